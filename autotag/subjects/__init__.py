"""In-memory subjects: the data model and a population with lifecycle events."""

from autotag.subjects.collection import SubjectCollection
from autotag.subjects.models import SubjectRecord

__all__ = ["SubjectCollection", "SubjectRecord"]
