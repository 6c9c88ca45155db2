from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _name_of(user: Any, default: str = "Unknown") -> str:
    if isinstance(user, dict):
        return user.get("name") or default
    return user or default


class CanonicalModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ProjectFile(CanonicalModel):
    id: str
    name: str
    extension: str
    size: int = 0
    uploaded_by: str = "Unknown"
    uploaded_at: Optional[datetime] = None
    last_modified: Optional[datetime] = None
    download_url: Optional[str] = None
    path: str = "/"

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "ProjectFile":
        name = raw.get("name") or ""
        return cls(
            id=str(raw.get("id", "")),
            name=name,
            extension=name.rsplit(".", 1)[-1] if "." in name else "",
            size=raw.get("size") or 0,
            uploaded_by=_name_of(raw.get("createdBy")),
            uploaded_at=raw.get("createdOn"),
            last_modified=raw.get("modifiedOn") or raw.get("createdOn"),
            download_url=raw.get("downloadUrl"),
            path=raw.get("path") or "/",
        )


class TrimbleNote(CanonicalModel):
    id: str
    title: str
    content: str = ""
    author: str = "Unknown"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    archived: bool = False
    project_id: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any], project_id: Optional[str] = None) -> "TrimbleNote":
        return cls(
            id=str(raw.get("id", "")),
            title=raw.get("label") or raw.get("title") or "Untitled",
            content=raw.get("description") or "",
            author=_name_of(raw.get("createdBy")),
            created_at=raw.get("createdOn"),
            updated_at=raw.get("modifiedOn") or raw.get("createdOn"),
            archived=bool(raw.get("done", False)),
            project_id=project_id or raw.get("projectId"),
        )


class BCFTopic(CanonicalModel):
    id: str
    title: str
    description: str = ""
    status: str = "Open"
    priority: str = "Medium"
    assigned_to: Optional[str] = None
    created_by: str = "Unknown"
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    due_date: Optional[datetime] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "BCFTopic":
        return cls(
            id=str(raw.get("guid") or raw.get("id") or ""),
            title=raw.get("title") or "Untitled",
            description=raw.get("description") or "",
            status=raw.get("topic_status") or "Open",
            priority=raw.get("priority") or "Medium",
            assigned_to=raw.get("assigned_to") or None,
            created_by=raw.get("creation_author") or "Unknown",
            created_at=raw.get("creation_date"),
            modified_at=raw.get("modified_date") or raw.get("creation_date"),
            due_date=raw.get("due_date") or None,
        )


class ProjectView(CanonicalModel):
    id: str
    name: str
    description: Optional[str] = None
    created_by: str = "Unknown"
    created_at: Optional[datetime] = None
    thumbnail: Optional[str] = None
    is_default: bool = False

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "ProjectView":
        return cls(
            id=str(raw.get("id", "")),
            name=raw.get("name") or "Untitled",
            description=raw.get("description") or None,
            created_by=_name_of(raw.get("createdBy")),
            created_at=raw.get("createdOn"),
            thumbnail=raw.get("thumbnail") or None,
            is_default=bool(raw.get("isDefault", False)),
        )


def to_canonical(resource: str, items: List[Dict[str, Any]], project_id: Optional[str] = None) -> List[CanonicalModel]:
    items = [item for item in items if isinstance(item, dict)]
    if resource == "files":
        return [ProjectFile.from_raw(item) for item in items]
    if resource == "todos":
        return [TrimbleNote.from_raw(item, project_id) for item in items]
    if resource == "topics":
        return [BCFTopic.from_raw(item) for item in items]
    if resource == "views":
        return [ProjectView.from_raw(item) for item in items]
    raise ValueError(f"No canonical shape for resource '{resource}'")
