#!/usr/bin/env python3
"""
models.py
--------------------
In-memory data model for the sermon catalog.

Classes:
    - PreachingInstance: One concrete occasion a sermon was delivered
    - SermonVersion: A revision record carried verbatim
    - Sermon: A catalogued sermon with its preaching history
    - Series: A thematic series, joined to sermons by title
    - ExpandedSermon: Read-only projection row for one occasion context

Canonical date invariant:
    Whenever ``preaching_history`` is non-empty, ``Sermon.date`` and
    ``Sermon.place`` equal the date and location of the earliest instance.
    ``canonicalize()`` restores that invariant and every mutation path in
    the store runs through it.

Serialization:
    ``to_dict()``/``from_dict()`` use the snapshot schema keys
    (``preachingHistory``, ``seriesOrder``, ``filePath`` ...). Dates are
    written as YYYY-MM-DD and read from any ISO date or datetime string.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional

# --- Local imports ---
from sermonlib.core.exceptions import ValidationError
from sermonlib.core.validators import DataValidator


def new_id() -> str:
    """Generate a fresh opaque record id."""
    return uuid.uuid4().hex


def new_series_id() -> str:
    """Generate a fresh series id."""
    return f"series-{uuid.uuid4().hex}"


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ----- Preaching history -----
@dataclass
class PreachingInstance:
    """
    One occasion on which a sermon was delivered.

    ``id`` is fixed once created; ``date`` and ``location`` may be edited.
    """
    id:       str
    date:     date
    location: str
    audience: Optional[str] = None
    notes:    Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "date": _iso(self.date),
            "location": self.location,
        }
        if self.audience is not None:
            data["audience"] = self.audience
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PreachingInstance":
        """
        Build an instance from a snapshot mapping.

        Raises:
            ValidationError: If the date is missing or not ISO formatted
        """
        try:
            when = DataValidator.normalize_date(data.get("date"))
        except ValueError as e:
            raise ValidationError(f"Invalid preaching date: {data.get('date')!r}") from e
        if when is None:
            raise ValidationError("Preaching instance missing date")

        return cls(
            id=str(data.get("id") or new_id()),
            date=when,
            location=str(data.get("location") or ""),
            audience=DataValidator.normalize_string(data.get("audience")),
            notes=DataValidator.normalize_string(data.get("notes")),
        )


@dataclass
class SermonVersion:
    """A revision record of a sermon manuscript."""
    id:        str
    version:   int
    title:     str
    date:      date
    changes:   str = ""
    file_path: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "title": self.title,
            "date": _iso(self.date),
            "changes": self.changes,
            "filePath": self.file_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SermonVersion":
        try:
            when = DataValidator.normalize_date(data.get("date"))
        except ValueError as e:
            raise ValidationError(f"Invalid version date: {data.get('date')!r}") from e
        return cls(
            id=str(data.get("id") or new_id()),
            version=DataValidator.normalize_int(data.get("version")) or 1,
            title=str(data.get("title") or ""),
            date=when or date.today(),
            changes=str(data.get("changes") or ""),
            file_path=str(data.get("filePath") or ""),
        )


# ----- Sermon -----
@dataclass
class Sermon:
    """
    A catalogued sermon.

    ``tags`` and ``references`` behave as insertion-ordered sets.
    ``series`` is the title of a Series, not its id.
    """
    id:                Optional[str]
    title:             str
    date:              date
    series:            Optional[str]            = None
    series_order:      Optional[int]            = None
    tags:              List[str]                = field(default_factory=list)
    summary:           Optional[str]            = None
    references:        List[str]                = field(default_factory=list)
    image:             Optional[str]            = None
    type:              Optional[str]            = None
    place:             Optional[str]            = None
    preaching_history: List[PreachingInstance]  = field(default_factory=list)
    versions:          List[SermonVersion]      = field(default_factory=list)
    file_path:         Optional[str]            = None
    file_size:         Optional[int]            = None
    last_modified:     Optional[datetime]       = None

    # ---- Preaching history queries ----
    def earliest_instance(self) -> Optional[PreachingInstance]:
        """First-preached instance (first in list order on ties)."""
        if not self.preaching_history:
            return None
        return min(self.preaching_history, key=lambda instance: instance.date)

    def latest_instance(self) -> Optional[PreachingInstance]:
        """Most recently preached instance (first in list order on ties)."""
        if not self.preaching_history:
            return None
        latest = self.preaching_history[0]
        for instance in self.preaching_history[1:]:
            if instance.date > latest.date:
                latest = instance
        return latest

    @property
    def first_preached(self) -> date:
        earliest = self.earliest_instance()
        return earliest.date if earliest else self.date

    @property
    def last_preached(self) -> date:
        latest = self.latest_instance()
        return latest.date if latest else self.date

    @property
    def preaching_count(self) -> int:
        return len(self.preaching_history) or 1

    # ---- Ordered-set mutators ----
    def add_tag(self, tag: str) -> bool:
        """Append a tag unless blank or already present. Returns True if added."""
        text = DataValidator.normalize_string(tag)
        if not text or text in self.tags:
            return False
        self.tags.append(text)
        return True

    def remove_tag(self, tag: str) -> bool:
        if tag in self.tags:
            self.tags.remove(tag)
            return True
        return False

    def add_reference(self, reference: str) -> bool:
        """Append a scripture reference unless blank or already present."""
        text = DataValidator.normalize_string(reference)
        if not text or text in self.references:
            return False
        self.references.append(text)
        return True

    def remove_reference(self, reference: str) -> bool:
        if reference in self.references:
            self.references.remove(reference)
            return True
        return False

    # ---- Serialization ----
    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "date": _iso(self.date),
            "tags": list(self.tags),
            "references": list(self.references),
            "preachingHistory": [i.to_dict() for i in self.preaching_history],
        }
        optional = {
            "series": self.series,
            "seriesOrder": self.series_order,
            "summary": self.summary,
            "image": self.image,
            "type": self.type,
            "place": self.place,
            "filePath": self.file_path,
            "fileSize": self.file_size,
            "lastModified": (
                self.last_modified.isoformat() if self.last_modified else None
            ),
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        if self.versions:
            data["versions"] = [v.to_dict() for v in self.versions]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sermon":
        """
        Build a sermon from a snapshot mapping.

        Missing optional fields default to empty. A missing sermon date is
        taken from the preaching history when there is one.

        Raises:
            ValidationError: If the record has no usable date at all
        """
        if not isinstance(data, dict):
            raise ValidationError("Sermon record is not an object")

        history = [
            PreachingInstance.from_dict(item)
            for item in data.get("preachingHistory") or []
            if isinstance(item, dict)
        ]
        versions = [
            SermonVersion.from_dict(item)
            for item in data.get("versions") or []
            if isinstance(item, dict)
        ]

        try:
            when = DataValidator.normalize_date(data.get("date"))
            last_modified = DataValidator.normalize_datetime(data.get("lastModified"))
        except ValueError as e:
            raise ValidationError(f"Invalid sermon date: {data.get('date')!r}") from e
        if when is None:
            if not history:
                raise ValidationError(
                    f"Sermon {data.get('title')!r} has no date and no preaching history"
                )
            when = min(i.date for i in history)

        return cls(
            id=str(data["id"]) if data.get("id") else new_id(),
            title=str(data.get("title") or "Untitled"),
            date=when,
            series=DataValidator.normalize_string(data.get("series")),
            series_order=DataValidator.normalize_int(data.get("seriesOrder")),
            tags=DataValidator.unique_strings(data.get("tags")),
            summary=data.get("summary") or None,
            references=DataValidator.unique_strings(data.get("references")),
            image=data.get("image") or None,
            type=data.get("type") or None,
            place=data.get("place") or None,
            preaching_history=history,
            versions=versions,
            file_path=data.get("filePath") or None,
            file_size=DataValidator.normalize_int(data.get("fileSize")),
            last_modified=last_modified,
        )


def canonicalize(sermon: Sermon) -> Sermon:
    """
    Return a copy whose date/place match the earliest preaching instance.

    Sermons without history are returned as an unchanged copy.
    """
    earliest = sermon.earliest_instance()
    if earliest is None:
        return replace(sermon)
    return replace(sermon, date=earliest.date, place=earliest.location)


def add_instance(
    sermon: Sermon,
    when: date,
    location: str,
    audience: Optional[str] = None,
    notes: Optional[str] = None,
) -> Sermon:
    """Return a copy with a new preaching instance appended."""
    instance = PreachingInstance(
        id=new_id(), date=when, location=location, audience=audience, notes=notes
    )
    return canonicalize(
        replace(sermon, preaching_history=[*sermon.preaching_history, instance])
    )


def update_instance(sermon: Sermon, instance_id: str, **changes: Any) -> Sermon:
    """
    Return a copy with one preaching instance edited.

    Only ``date``, ``location``, ``audience`` and ``notes`` may change.

    Raises:
        ValidationError: If the instance is unknown or an id change is requested
    """
    allowed = {"date", "location", "audience", "notes"}
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(f"Cannot change preaching fields: {sorted(unknown)}")

    if not any(i.id == instance_id for i in sermon.preaching_history):
        raise ValidationError(f"Unknown preaching instance: {instance_id}")

    history = [
        replace(i, **changes) if i.id == instance_id else i
        for i in sermon.preaching_history
    ]
    return canonicalize(replace(sermon, preaching_history=history))


def remove_instance(sermon: Sermon, instance_id: str) -> Sermon:
    """Return a copy without the given preaching instance."""
    history = [i for i in sermon.preaching_history if i.id != instance_id]
    return canonicalize(replace(sermon, preaching_history=history))


# ----- Series -----
@dataclass
class Series:
    """
    A thematic series of sermons.

    ``title`` is the join key against ``Sermon.series``. ``sermons`` is an
    index of member ids maintained by the reconciler.
    """
    id:          str
    title:       str
    description: Optional[str]  = None
    start_date:  Optional[date] = None
    end_date:    Optional[date] = None
    sermons:     List[str]      = field(default_factory=list)
    tags:        List[str]      = field(default_factory=list)
    image:       Optional[str]  = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "sermons": list(self.sermons),
            "tags": list(self.tags),
        }
        optional = {
            "description": self.description,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "image": self.image,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Series":
        if not isinstance(data, dict) or not data.get("title"):
            raise ValidationError("Series record missing title")
        try:
            start = DataValidator.normalize_date(data.get("startDate"))
            end = DataValidator.normalize_date(data.get("endDate"))
        except ValueError as e:
            raise ValidationError(f"Invalid series dates for {data.get('title')!r}") from e
        return cls(
            id=str(data.get("id") or new_series_id()),
            title=str(data["title"]),
            description=data.get("description") or None,
            start_date=start,
            end_date=end,
            sermons=[str(s) for s in data.get("sermons") or []],
            tags=DataValidator.unique_strings(data.get("tags")),
            image=data.get("image") or None,
        )


# ----- Projection row -----
@dataclass(frozen=True)
class ExpandedSermon:
    """
    Read-only projection of a sermon for one occasion context.

    ``date``/``place`` are overridden by ``preaching_instance`` when there is
    one; ``original_date`` always holds the sermon's canonical earliest date.
    ``row_id`` is unique per row within one projection.
    """
    sermon:             Sermon
    row_id:             str
    date:               date
    place:              str
    original_date:      date
    preaching_instance: Optional[PreachingInstance] = None

    @property
    def sermon_id(self) -> Optional[str]:
        return self.sermon.id

    @property
    def title(self) -> str:
        return self.sermon.title

    @property
    def series(self) -> Optional[str]:
        return self.sermon.series

    @property
    def summary(self) -> Optional[str]:
        return self.sermon.summary

    @property
    def tags(self) -> List[str]:
        return self.sermon.tags

    @property
    def references(self) -> List[str]:
        return self.sermon.references

    @property
    def type(self) -> Optional[str]:
        return self.sermon.type

    @property
    def image(self) -> Optional[str]:
        return self.sermon.image
