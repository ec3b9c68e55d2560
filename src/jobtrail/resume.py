"""Resume document model and the editing operations the builder performs.

The resume is a single mutable document per user. It is never deleted, only
overwritten by the autosave component.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

SECTIONS = ("experience", "education", "projects")
SCALAR_FIELDS = ("full_name", "email", "phone", "summary", "skills", "avatar")


def _new_id() -> str:
    return uuid4().hex[:12]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class ResumeSection:
    """An experience or education entry."""

    id: str = field(default_factory=_new_id)
    title: str = ""
    company: str = ""
    date: str = ""
    details: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, fresh_id: bool = False) -> "ResumeSection":
        return cls(
            id=_new_id() if fresh_id or not data.get("id") else str(data["id"]),
            title=_text(data.get("title")),
            company=_text(data.get("company")),
            date=_text(data.get("date")),
            details=_text(data.get("details")),
        )


@dataclass
class Project:
    id: str = field(default_factory=_new_id)
    name: str = ""
    technologies: str = ""
    link: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, fresh_id: bool = False) -> "Project":
        return cls(
            id=_new_id() if fresh_id or not data.get("id") else str(data["id"]),
            name=_text(data.get("name")),
            technologies=_text(data.get("technologies")),
            link=_text(data.get("link")),
            description=_text(data.get("description")),
        )


@dataclass
class Resume:
    """Aggregate resume document edited by the user."""

    full_name: str = ""
    email: str = ""
    phone: str = ""
    summary: str = ""
    skills: str = ""
    experience: List[ResumeSection] = field(default_factory=list)
    education: List[ResumeSection] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    avatar: Optional[str] = None

    def is_blank(self) -> bool:
        """True while the document is still in its untouched default state."""

        return self == Resume()

    def skill_list(self) -> List[str]:
        return [skill.strip() for skill in self.skills.split(",") if skill.strip()]

    def set_field(self, name: str, value: Optional[str]) -> None:
        """Update one of the top-level text fields (or the avatar)."""

        if name not in SCALAR_FIELDS:
            raise ValueError(f"Unknown resume field: {name}")
        if name == "avatar":
            self.avatar = value or None
        else:
            setattr(self, name, value or "")

    def _section(self, section: str) -> list:
        if section not in SECTIONS:
            raise ValueError(f"Unknown resume section: {section}")
        return getattr(self, section)

    def add_item(self, section: str):
        """Append an empty entry to ``section`` and return it."""

        item = Project() if section == "projects" else ResumeSection()
        self._section(section).append(item)
        return item

    def remove_item(self, section: str, item_id: str) -> bool:
        entries = self._section(section)
        before = len(entries)
        entries[:] = [entry for entry in entries if entry.id != item_id]
        return len(entries) != before

    def update_item(self, section: str, item_id: str, name: str, value: str) -> None:
        for entry in self._section(section):
            if entry.id == item_id:
                if name == "id" or not hasattr(entry, name):
                    raise ValueError(f"Unknown {section} field: {name}")
                setattr(entry, name, value)
                return
        raise KeyError(item_id)

    def attach_avatar(self, data_url: str) -> None:
        self.avatar = data_url

    def apply_parsed(self, data: Mapping[str, Any]) -> None:
        """Merge fields returned by the resume parser.

        Missing fields become empty; every imported entry gets a fresh id. The
        current avatar is kept.
        """

        self.full_name = _text(data.get("fullName", data.get("full_name")))
        self.email = _text(data.get("email"))
        self.phone = _text(data.get("phone"))
        self.summary = _text(data.get("summary"))
        skills = data.get("skills")
        self.skills = ", ".join(str(s) for s in skills) if isinstance(skills, list) else _text(skills)
        self.experience = [
            ResumeSection.from_dict(entry, fresh_id=True)
            for entry in data.get("experience") or []
            if isinstance(entry, Mapping)
        ]
        self.education = [
            ResumeSection.from_dict(entry, fresh_id=True)
            for entry in data.get("education") or []
            if isinstance(entry, Mapping)
        ]
        self.projects = [
            Project.from_dict(entry, fresh_id=True)
            for entry in data.get("projects") or []
            if isinstance(entry, Mapping)
        ]

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, data: Optional[Mapping[str, Any]]) -> "Resume":
        if not data:
            return cls()
        return cls(
            full_name=_text(data.get("full_name", data.get("fullName"))),
            email=_text(data.get("email")),
            phone=_text(data.get("phone")),
            summary=_text(data.get("summary")),
            skills=_text(data.get("skills")),
            experience=[ResumeSection.from_dict(entry) for entry in data.get("experience") or []],
            education=[ResumeSection.from_dict(entry) for entry in data.get("education") or []],
            projects=[Project.from_dict(entry) for entry in data.get("projects") or []],
            avatar=data.get("avatar") or None,
        )
