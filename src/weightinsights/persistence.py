"""JSON-file persistence for the user's goal and annotations.

Repositories never touch the state tree directly: loading dispatches
LOAD_GOAL / LOAD_ANNOTATIONS, edits dispatch ADD_ANNOTATION /
DELETE_ANNOTATION, and saving reads a `get_state()` snapshot.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any

from weightinsights.analytics.models import Annotation, Goal
from weightinsights.store.actions import (
    add_annotation,
    delete_annotation,
    load_annotations,
    load_goal,
)
from weightinsights.store.reducer import coerce_annotation, coerce_date, coerce_number
from weightinsights.store.store import Store

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    """Return parsed JSON, or None if the file is missing or corrupt.

    Corrupt files are removed so the next save starts clean.
    """
    if not path.exists():
        return None
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Could not read %s, discarding it: %s", path, e)
        path.unlink(missing_ok=True)
        return None


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


class GoalRepository:
    """Loads and saves the goal at a JSON path."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> Goal:
        data = _read_json(self.path)
        if not isinstance(data, dict):
            return Goal()
        return Goal(
            weight=coerce_number(data.get("weight")),
            date=coerce_date(data.get("date")),
            target_rate=coerce_number(data.get("target_rate")),
        )

    def load(self, store: Store) -> None:
        store.dispatch(load_goal(self.read()))

    def save(self, store: Store) -> None:
        goal = store.get_state().goal
        _write_json(
            self.path,
            {
                "weight": goal.weight,
                "date": goal.date.isoformat() if goal.date else None,
                "target_rate": goal.target_rate,
            },
        )
        logger.info("Saved goal to %s", self.path)

    def update(self, store: Store, **fields: Any) -> None:
        """Apply goal field updates through the store and persist them."""
        store.dispatch(load_goal(fields))
        self.save(store)


class AnnotationRepository:
    """Loads and saves annotations at a JSON path."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> list[Annotation]:
        data = _read_json(self.path)
        if not isinstance(data, list):
            return []
        annotations = []
        for item in data:
            annotation = coerce_annotation(item)
            if annotation is None:
                logger.warning("Skipping invalid annotation: %r", item)
                continue
            annotations.append(annotation)
        return annotations

    def load(self, store: Store) -> None:
        annotations = self.read()
        store.dispatch(load_annotations(annotations))
        logger.debug("Loaded %d annotations", len(annotations))

    def save(self, store: Store) -> None:
        annotations = store.get_state().annotations
        _write_json(
            self.path,
            [{**asdict(a), "date": a.date.isoformat()} for a in annotations],
        )
        logger.info("Saved %d annotations to %s", len(annotations), self.path)

    def add(self, store: Store, day: date, text: str, type: str = "point") -> Annotation:
        annotation = Annotation(id=uuid.uuid4().hex, date=day, text=text, type=type)
        store.dispatch(add_annotation(annotation))
        self.save(store)
        return annotation

    def remove(self, store: Store, annotation_id: str) -> bool:
        """Remove by id; returns False if no annotation had that id."""
        before = len(store.get_state().annotations)
        store.dispatch(delete_annotation(annotation_id))
        removed = len(store.get_state().annotations) < before
        if removed:
            self.save(store)
        return removed
