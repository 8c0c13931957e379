# tests/conftest.py

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytz

from config import ProgressionConfig
from core.models import SubTask, UserDocument
from core.progression import ProgressionEngine
from database.manager import JsonDocumentStore
from services import goal_service as goal_service_module
from services.goal_service import GoalService

@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 10, 9, 30, tzinfo=pytz.UTC)

@pytest.fixture
def settings():
    return ProgressionConfig()

@pytest.fixture
def engine(settings):
    return ProgressionEngine(settings)

@pytest.fixture
def document():
    return UserDocument()

@pytest.fixture
def export_dir(tmp_path):
    return tmp_path / "exports"

@pytest.fixture
def store(tmp_path):
    return JsonDocumentStore(tmp_path / "documents")

@pytest.fixture
def service(store, engine, settings, export_dir):
    return GoalService(store=store, engine=engine, settings=settings, export_dir=export_dir)

@pytest.fixture
def installed_service(service, monkeypatch):
    """GoalService, который возвращает get_goal_service()"""
    monkeypatch.setattr(goal_service_module, "_goal_service", service)
    return service

def put_sub_task(document, title, section=0, cell=0, completed=False, difficulty="B"):
    """Положить подзадачу прямо в дерево, минуя операции"""
    sub_task = SubTask.create(title, completed=completed, difficulty=difficulty)
    document.mandala.surrounding_sections[section].surrounding_cells[cell].ensure_sub_tasks().append(sub_task)
    return sub_task

def make_update(text="", user_id=42):
    update = MagicMock()
    update.effective_user.id = user_id
    update.effective_user.first_name = "Tester"
    update.message.text = text
    update.message.reply_text = AsyncMock()
    update.message.reply_html = AsyncMock()
    return update

def make_context(args=None):
    context = MagicMock()
    context.args = args or []
    return context
