# services/goal_service.py
"""
Сервис целей: связывает хранилище, дерево целей, прогресс и Markdown.

Каждая операция проходит один цикл: загрузить документ целиком,
собрать типизированный UserDocument, применить чистую операцию к копии,
записать документ целиком (merge) и, если включён auto_sync,
переэкспортировать оба Markdown-документа.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from config import ProgressionConfig, config
from core import goal_tree
from core.goal_tree import TreeEditResult
from core.models import ObsidianConfig, UserDocument
from core.progression import ProgressionEngine
from database.manager import JsonDocumentStore
from services import completion, markdown_sync
from services.completion import CompletionOutcome
from services.markdown_sync import TaskImportResult
from utils.datetime_utils import now_local

logger = logging.getLogger(__name__)

UserId = Union[int, str]

_UNSET = object()

@dataclass
class ExportResult:
    """Пути записанных файлов"""
    mandala_path: Path
    tasks_path: Path

@dataclass
class SyncResult:
    """Итог /sync: импорт списка задач и последующий экспорт"""
    tasks: Optional[TaskImportResult]
    export: ExportResult

class GoalService:
    """Операции над документом пользователя"""

    def __init__(self, store: Optional[JsonDocumentStore] = None,
                 engine: Optional[ProgressionEngine] = None,
                 settings: Optional[ProgressionConfig] = None,
                 export_dir: Optional[Union[str, Path]] = None):
        self.settings = settings or config.progression
        self.store = store or JsonDocumentStore(config.storage.documents_dir)
        self.engine = engine or ProgressionEngine(self.settings)
        self.default_export_dir = Path(export_dir) if export_dir else config.storage.export_dir

        logger.info(f"GoalService инициализирован: {self.store.data_dir}")

    # ===== ДОКУМЕНТ =====

    def load_document(self, user_id: UserId) -> UserDocument:
        """Загрузить документ; при первом обращении создать и сохранить документ по умолчанию"""
        raw = self.store.load(user_id)
        if raw is None:
            document = UserDocument()
            self.store.save(user_id, document.to_dict(), merge=False)
            logger.info(f"📝 Создан документ по умолчанию для пользователя {user_id}")
            return document
        return UserDocument.from_dict(raw)

    def save_document(self, user_id: UserId, document: UserDocument,
                      now: Optional[datetime] = None) -> None:
        self.store.save(user_id, document.to_dict(), merge=True)
        if document.obsidian.auto_sync:
            self._export(user_id, document, now or now_local())

    def export_dir_for(self, document: UserDocument) -> Path:
        if document.obsidian.export_path:
            return Path(document.obsidian.export_path)
        return self.default_export_dir

    def _commit(self, user_id: UserId, result: TreeEditResult, now: Optional[datetime]) -> TreeEditResult:
        if result.changed:
            self.save_document(user_id, result.document, now)
        return result

    # ===== ПРАВКА ДЕРЕВА =====

    def add_sub_task(self, user_id: UserId, section_id: str, cell_id: str, title: str,
                     now: Optional[datetime] = None) -> TreeEditResult:
        now = now or now_local()
        document = self.load_document(user_id)
        result = goal_tree.add_sub_task(document, section_id, cell_id, title, now=now)
        if result.changed:
            logger.info(f"➕ Пользователь {user_id}: добавлена подзадача '{title}'")
        return self._commit(user_id, result, now)

    def toggle_sub_task(self, user_id: UserId, section_id: str, cell_id: str, sub_task_id: str,
                        now: Optional[datetime] = None) -> TreeEditResult:
        now = now or now_local()
        document = self.load_document(user_id)
        result = goal_tree.toggle_sub_task(
            document, section_id, cell_id, sub_task_id, now,
            engine=self.engine, track_activity=self.settings.track_ui_activity
        )
        if result.changed:
            state = "выполнена" if result.sub_task.completed else "снята отметка"
            logger.info(f"🔄 Пользователь {user_id}: подзадача '{result.sub_task.title}' {state}")
        return self._commit(user_id, result, now)

    def delete_sub_task(self, user_id: UserId, section_id: str, cell_id: str, sub_task_id: str,
                        now: Optional[datetime] = None) -> TreeEditResult:
        now = now or now_local()
        document = self.load_document(user_id)
        result = goal_tree.delete_sub_task(document, section_id, cell_id, sub_task_id, now, engine=self.engine)
        if result.changed:
            logger.info(f"🗑 Пользователь {user_id}: удалена подзадача '{result.sub_task.title}'")
        return self._commit(user_id, result, now)

    def edit_sub_task(self, user_id: UserId, section_id: str, cell_id: str, sub_task_id: str,
                      new_title: str, now: Optional[datetime] = None) -> TreeEditResult:
        document = self.load_document(user_id)
        result = goal_tree.edit_sub_task(document, section_id, cell_id, sub_task_id, new_title)
        return self._commit(user_id, result, now)

    def retitle_cell(self, user_id: UserId, section_id: str, cell_id: str, new_title: str,
                     now: Optional[datetime] = None) -> TreeEditResult:
        document = self.load_document(user_id)
        result = goal_tree.retitle_cell(document, section_id, cell_id, new_title)
        return self._commit(user_id, result, now)

    # ===== ЧАТ =====

    def complete_by_title(self, user_id: UserId, title: str,
                          now: Optional[datetime] = None) -> CompletionOutcome:
        now = now or now_local()
        document = self.load_document(user_id)
        outcome = completion.complete_by_title(document, title, now, engine=self.engine)
        if outcome.changed:
            self.save_document(user_id, outcome.document, now)
        return outcome

    # ===== MARKDOWN =====

    def _export(self, user_id: UserId, document: UserDocument, now: datetime) -> ExportResult:
        export_dir = self.export_dir_for(document)
        result = ExportResult(
            mandala_path=markdown_sync.export_mandala(document, export_dir, now),
            tasks_path=markdown_sync.export_tasks(document, export_dir, now)
        )
        logger.info(f"📤 Пользователь {user_id}: экспорт в {export_dir}")
        return result

    def export_markdown(self, user_id: UserId, now: Optional[datetime] = None) -> ExportResult:
        return self._export(user_id, self.load_document(user_id), now or now_local())

    def import_mandala(self, user_id: UserId, now: Optional[datetime] = None) -> Optional[UserDocument]:
        """Обновлённый документ или None, если импортировать нечего"""
        document = self.load_document(user_id)
        chart = markdown_sync.import_mandala(document.mandala, self.export_dir_for(document))
        if chart is None:
            return None
        document.mandala = chart
        self.save_document(user_id, document, now)
        return document

    def import_tasks(self, user_id: UserId, now: Optional[datetime] = None) -> Optional[TaskImportResult]:
        now = now or now_local()
        document = self.load_document(user_id)
        result = markdown_sync.import_tasks(document, self.export_dir_for(document), now=now)
        if result is not None and result.imported:
            self.save_document(user_id, result.document, now)
        return result

    def sync(self, user_id: UserId, now: Optional[datetime] = None) -> SyncResult:
        """Забрать правки из списка задач и выгрузить свежие документы"""
        now = now or now_local()
        tasks = self.import_tasks(user_id, now)
        document = tasks.document if tasks is not None else self.load_document(user_id)
        return SyncResult(tasks=tasks, export=self._export(user_id, document, now))

    # ===== НАСТРОЙКИ =====

    def update_obsidian_config(self, user_id: UserId, export_path=_UNSET,
                               auto_sync: Optional[bool] = None) -> ObsidianConfig:
        """Изменить только переданные поля; export_path=None сбрасывает путь"""
        document = self.load_document(user_id)
        if export_path is not _UNSET:
            document.obsidian.export_path = export_path or None
        if auto_sync is not None:
            document.obsidian.auto_sync = auto_sync

        self.store.save(user_id, document.to_dict(), merge=True)
        logger.info(f"⚙️ Пользователь {user_id}: настройки Obsidian {document.obsidian.to_dict()}")
        return document.obsidian

# ===== ГЛОБАЛЬНЫЙ ЭКЗЕМПЛЯР =====

_goal_service: Optional[GoalService] = None

def get_goal_service() -> GoalService:
    """Получение глобального экземпляра GoalService"""
    global _goal_service
    if _goal_service is None:
        _goal_service = GoalService()
    return _goal_service

def initialize_goal_service(store: Optional[JsonDocumentStore] = None,
                            export_dir: Optional[Union[str, Path]] = None) -> GoalService:
    """Инициализация GoalService"""
    global _goal_service
    _goal_service = GoalService(store=store, export_dir=export_dir)
    return _goal_service
