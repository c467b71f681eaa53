"""Question dependency graph for a single form.

A follow-up question names a parent question and the parent option indices
that enable it. ``build_graph`` validates those references once per form
load (and before an author saves a change) and exposes the parent/child
structure the visibility evaluator walks.

Cycles cannot be expressed: every parent must have a strictly smaller
``qorder`` than its child, so any cyclic chain fails that check first and
construction never has to follow a chain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from formflow.logic.answer_index import choices_for
from formflow.logic.errors import InvalidDependencyOrder
from formflow.models.records import Question

logger = logging.getLogger(__name__)


@dataclass
class QuestionGraph:
    questions: List[Question]
    by_id: Dict[int, Question]
    children: Dict[int, List[int]] = field(default_factory=dict)
    roots: List[int] = field(default_factory=list)

    def question(self, question_id: int) -> Question:
        return self.by_id[question_id]

    def parent_of(self, question_id: int) -> Optional[Question]:
        pid = self.by_id[question_id].parent_question_id
        return self.by_id[pid] if pid is not None else None

    def descendants(self, question_id: int) -> List[int]:
        """All transitive follow-ups of ``question_id`` in qorder order."""
        found: List[int] = []
        stack = list(self.children.get(question_id, []))
        while stack:
            qid = stack.pop()
            found.append(qid)
            stack.extend(self.children.get(qid, []))
        return sorted(found, key=lambda q: (self.by_id[q].qorder, q))

    def unreachable_enabling_answers(self) -> List[Tuple[int, int]]:
        """Return (question_id, index) pairs whose index has no parent option.

        Typically produced when an author deletes a parent option after
        wiring a follow-up to it.
        """
        out: List[Tuple[int, int]] = []
        for q in self.questions:
            if q.parent_question_id is None:
                continue
            n = len(choices_for(self.by_id[q.parent_question_id]))
            out.extend((q.id, idx) for idx in q.enabling_answers if idx < 0 or idx >= n)
        return out


def build_graph(questions: Iterable[Question]) -> QuestionGraph:
    """Validate parent references and return the form's dependency graph.

    Raises InvalidDependencyOrder when:
    - two questions share an id
    - a parent id is not among ``questions`` or belongs to another form
    - a parent's qorder is not strictly smaller than its child's
    """
    ordered = sorted(questions, key=lambda q: (q.qorder, q.id))
    by_id: Dict[int, Question] = {}
    for q in ordered:
        if q.id in by_id:
            raise InvalidDependencyOrder(f"duplicate question id {q.id}", question_id=q.id)
        by_id[q.id] = q

    children: Dict[int, List[int]] = {}
    roots: List[int] = []
    for q in ordered:
        pid = q.parent_question_id
        if pid is None:
            if q.enabling_answers:
                logger.warning(
                    "enabling_answers_without_parent question_id=%s enabling=%s", q.id, q.enabling_answers
                )
            roots.append(q.id)
            continue
        parent = by_id.get(pid)
        if parent is None or parent.form_id != q.form_id:
            raise InvalidDependencyOrder(
                f"question {q.id} references parent {pid} which is not in form {q.form_id}",
                question_id=q.id,
                parent_question_id=pid,
            )
        if parent.qorder >= q.qorder:
            raise InvalidDependencyOrder(
                f"question {q.id} (qorder {q.qorder}) must come after its parent {pid} (qorder {parent.qorder})",
                question_id=q.id,
                parent_question_id=pid,
            )
        children.setdefault(pid, []).append(q.id)

    logger.info("dependency_graph_built questions=%s roots=%s follow_ups=%s", len(ordered), len(roots), len(ordered) - len(roots))
    return QuestionGraph(questions=ordered, by_id=by_id, children=children, roots=roots)


def describe_follow_up(graph: QuestionGraph, question_id: int) -> Optional[str]:
    """Return the authoring hint for a follow-up question, or None for roots."""
    parent = graph.parent_of(question_id)
    if parent is None:
        return None
    choices = choices_for(parent)
    labels = [
        f'"{choices[i]}"' if 0 <= i < len(choices) else f"<missing option {i}>"
        for i in graph.question(question_id).enabling_answers
    ]
    return f'Follow up to "{parent.question_title or ""}" when answering {", ".join(labels)}'


__all__ = ["QuestionGraph", "build_graph", "describe_follow_up"]
