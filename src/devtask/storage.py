"""Storage layer for DevTask using a single YAML document.

The document holds four top-level lists (``roles``, ``users``, ``projects``,
``tasks``); relations are stored as ids and re-linked on load.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config import ConfigModel
from .domain import Project, Role, Task, TaskItem, User
from .errors import StoreError
from .utils.datetime import coerce_datetime, to_iso_string

logger = logging.getLogger(__name__)


@dataclass
class StoreContents:
    """Everything held by the store, with relations linked."""

    roles: List[Role] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.roles or self.users or self.projects or self.tasks)


class EntityYamlFormat:
    """Handles conversion between entities and plain YAML-ready dicts."""

    @staticmethod
    def role_to_dict(role: Role) -> Dict[str, Any]:
        return {
            "name": role.name,
            "permissions": list(role.permissions),
            "created": to_iso_string(role.created),
            "updated": to_iso_string(role.updated),
        }

    @staticmethod
    def user_to_dict(user: User) -> Dict[str, Any]:
        return {
            "id": user.id,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "roles": user.role_names,
            "created": to_iso_string(user.created),
            "updated": to_iso_string(user.updated),
        }

    @staticmethod
    def project_to_dict(project: Project) -> Dict[str, Any]:
        return {
            "id": project.id,
            "title": project.title,
            "description": project.description,
            "members": [user.id for user in project.users],
            "created": to_iso_string(project.created),
            "updated": to_iso_string(project.updated),
        }

    @staticmethod
    def task_to_dict(task: Task) -> Dict[str, Any]:
        return {
            "id": task.id,
            "name": task.name,
            "type": task.type,
            "status": task.status,
            "priority": task.priority,
            "comment": task.comment,
            "project": task.project.id if task.project else None,
            "assigned_user": task.assigned_user.id if task.assigned_user else None,
            "created": to_iso_string(task.created),
            "assigned_at": to_iso_string(task.assigned_at),
            "completed_at": to_iso_string(task.completed_at),
            "updated": to_iso_string(task.updated),
            "items": [
                {
                    "description": item.description,
                    "priority": item.priority,
                    "comment": item.comment,
                    "completed_at": to_iso_string(item.completed_at),
                    "created": to_iso_string(item.created),
                    "updated": to_iso_string(item.updated),
                }
                for item in task.items
            ],
        }

    @classmethod
    def dump(cls, contents: StoreContents) -> Dict[str, Any]:
        return {
            "roles": [cls.role_to_dict(r) for r in contents.roles],
            "users": [cls.user_to_dict(u) for u in contents.users],
            "projects": [cls.project_to_dict(p) for p in contents.projects],
            "tasks": [cls.task_to_dict(t) for t in contents.tasks],
        }

    @staticmethod
    def load(data: Dict[str, Any]) -> StoreContents:
        """Build linked entities from a parsed document.

        Raises:
            StoreError: If a record is malformed or references a missing id
        """
        try:
            roles = [
                Role(
                    name=_text(r["name"]),
                    permissions=[_text(p) for p in r.get("permissions") or []],
                    created=coerce_datetime(r.get("created")) or _epoch(),
                    updated=coerce_datetime(r.get("updated")),
                )
                for r in _records(data, "roles")
            ]
            roles_by_name = {role.name: role for role in roles}

            users = []
            for u in _records(data, "users"):
                users.append(User(
                    id=str(u["id"]),
                    first_name=_text(u.get("first_name")),
                    last_name=_text(u.get("last_name")),
                    roles=[_lookup(roles_by_name, _text(name), "role") for name in u.get("roles") or []],
                    created=coerce_datetime(u.get("created")) or _epoch(),
                    updated=coerce_datetime(u.get("updated")),
                ))
            users_by_id = {user.id: user for user in users}

            projects = []
            for p in _records(data, "projects"):
                projects.append(Project(
                    id=str(p["id"]),
                    title=_text(p.get("title")),
                    description=_text(p.get("description")),
                    users=[_lookup(users_by_id, str(uid), "user") for uid in p.get("members") or []],
                    created=coerce_datetime(p.get("created")) or _epoch(),
                    updated=coerce_datetime(p.get("updated")),
                ))
            projects_by_id = {project.id: project for project in projects}

            tasks = []
            for t in _records(data, "tasks"):
                project_id = t.get("project")
                user_id = t.get("assigned_user")
                tasks.append(Task(
                    id=str(t["id"]),
                    name=_text(t.get("name")),
                    type=_text(t.get("type")),
                    status=_text(t.get("status")),
                    priority=_text(t.get("priority")),
                    comment=_text(t.get("comment")),
                    created=coerce_datetime(t.get("created")) or _epoch(),
                    assigned_at=coerce_datetime(t.get("assigned_at")),
                    completed_at=coerce_datetime(t.get("completed_at")),
                    updated=coerce_datetime(t.get("updated")),
                    project=_lookup(projects_by_id, str(project_id), "project") if project_id else None,
                    assigned_user=_lookup(users_by_id, str(user_id), "user") if user_id else None,
                    items=[
                        TaskItem(
                            description=_text(i.get("description")),
                            priority=int(i.get("priority") or 0),
                            comment=i.get("comment"),
                            completed_at=coerce_datetime(i.get("completed_at")),
                            created=coerce_datetime(i.get("created")) or _epoch(),
                            updated=coerce_datetime(i.get("updated")),
                        )
                        for i in _records(t, "items")
                    ],
                ))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Malformed store document: {e}") from e

        return StoreContents(roles=roles, users=users, projects=projects, tasks=tasks)


def _records(record: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """The list under ``key``, checked to hold only mappings."""
    records = record.get(key) or []
    if not isinstance(records, list):
        raise StoreError(f"Malformed store document: '{key}' is not a list")
    for entry in records:
        if not isinstance(entry, dict):
            raise StoreError(f"Malformed store document: {key} entry {entry!r} is not a mapping")
    return records


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _lookup(index: Dict[str, Any], key: str, kind: str):
    try:
        return index[key]
    except KeyError:
        raise StoreError(f"Unknown {kind} reference: {key}") from None


def _epoch():
    return coerce_datetime("1970-01-01T00:00:00+00:00")


class Storage:
    """Reads and writes the entity store file."""

    def __init__(self, config: ConfigModel, path: Optional[Path] = None):
        self.config = config
        self.path = Path(path) if path is not None else config.get_store_path()

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> StoreContents:
        """Load all entities.

        A missing file is an empty store.

        Raises:
            StoreError: If the file cannot be read or parsed
        """
        if not self.path.exists():
            logger.debug(f"Store {self.path} does not exist yet, treating as empty")
            return StoreContents()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Could not read store {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Store {self.path} is not a mapping")

        contents = EntityYamlFormat.load(data)
        logger.debug(
            f"Loaded {len(contents.projects)} projects, {len(contents.users)} users, "
            f"{len(contents.tasks)} tasks from {self.path}"
        )
        return contents

    def save(self, contents: StoreContents) -> None:
        """Write all entities, replacing the current file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = EntityYamlFormat.dump(contents)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(document, f, sort_keys=False, allow_unicode=True)
            tmp_path.replace(self.path)
        except OSError as e:
            raise StoreError(f"Could not write store {self.path}: {e}") from e
        logger.info(f"Saved store to {self.path}")

    def is_empty(self) -> bool:
        """True when the store holds no entities at all."""
        return self.load().is_empty()
