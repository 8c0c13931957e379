# services/__init__.py

"""
Сервисы: обмен с Markdown, выполнение по названию и GoalService,
который собирает их вместе с хранилищем.
"""

from .goal_service import GoalService, get_goal_service, initialize_goal_service

__all__ = [
    'GoalService',
    'get_goal_service',
    'initialize_goal_service',
]
