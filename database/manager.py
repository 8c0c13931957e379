# database/manager.py
"""
Хранилище пользовательских документов: один JSON-файл на пользователя.

Документ читается и пишется целиком. save(merge=True) сливает словари
рекурсивно, как set(..., merge=True) у документных БД: вложенные словари
объединяются, списки и скаляры заменяются. По умолчанию побеждает последняя
запись; expected_version включает условную запись.
"""

import copy
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

VERSION_KEY = "_version"

# ===== EXCEPTIONS =====

class DatabaseError(Exception):
    """Базовое исключение для ошибок хранилища"""
    pass

class DatabaseCorruptionError(DatabaseError):
    """Ошибка повреждения данных"""
    pass

class DocumentConflictError(DatabaseError):
    """Документ изменился после чтения"""

    def __init__(self, user_id: str, expected: int, actual: int):
        super().__init__(f"Document {user_id} version {actual}, expected {expected}")
        self.user_id = user_id
        self.expected = expected
        self.actual = actual

def deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged

class JsonDocumentStore:
    """Файловое хранилище документов"""

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        self._lock = threading.RLock()

    def _user_file(self, user_id: Union[int, str]) -> Path:
        return self.data_dir / f"user_{user_id}.json"

    def exists(self, user_id: Union[int, str]) -> bool:
        return self._user_file(user_id).exists()

    def load(self, user_id: Union[int, str]) -> Optional[Dict[str, Any]]:
        """Документ или None, если его ещё нет"""
        path = self._user_file(user_id)
        with self._lock:
            if not path.exists():
                return None
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                logger.warning(f"⚠️ Документ пользователя {user_id} повреждён: {e}")
                raise DatabaseCorruptionError(f"Corrupted document for user {user_id}: {e}") from e
            except OSError as e:
                raise DatabaseError(f"Failed to read document for user {user_id}: {e}") from e

        if not isinstance(data, dict):
            raise DatabaseCorruptionError(f"Document for user {user_id} is not an object")
        return data

    def save(self, user_id: Union[int, str], document: Dict[str, Any], merge: bool = True,
             expected_version: Optional[int] = None) -> int:
        """Записать документ целиком и вернуть новую версию"""
        with self._lock:
            current = self.load(user_id) or {}
            current_version = int(current.get(VERSION_KEY, 0))

            if expected_version is not None and expected_version != current_version:
                logger.warning(
                    f"⚠️ Конфликт версий документа {user_id}: "
                    f"ожидалась {expected_version}, в хранилище {current_version}"
                )
                raise DocumentConflictError(str(user_id), expected_version, current_version)

            payload = {k: v for k, v in document.items() if k != VERSION_KEY}
            data = deep_merge(current, payload) if merge else copy.deepcopy(payload)
            data[VERSION_KEY] = current_version + 1

            self._write_atomic(self._user_file(user_id), data)
            return data[VERSION_KEY]

    def delete(self, user_id: Union[int, str]) -> bool:
        with self._lock:
            path = self._user_file(user_id)
            if path.exists():
                path.unlink()
                return True
            return False

    def _write_atomic(self, path: Path, data: Dict[str, Any]) -> None:
        """Атомарное сохранение через временный файл"""
        temp_file = path.with_suffix('.tmp')
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(temp_file, path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise DatabaseError(f"Failed to write {path}: {e}") from e
