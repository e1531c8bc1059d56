"""Section protocol for the shared status comment.

A managed comment body looks like::

    <signature><SEPARATOR><section><SEPARATOR><section>...

Each section starts with a ``<!-- WORKFLOW:<name> -->`` marker naming the
workflow that owns it. Workflows finish in any order, so every run replaces
its own section in place (or appends it) and leaves the others untouched.
The literal format must stay stable: comments written by earlier runs are
parsed by later ones.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

SEPARATOR = "\n<!-- SEPARATOR -->\n"

_SIGNATURE_TEMPLATE = "GitHub Action status on {head_commit} generated by comment-failure-action"
_TAG_TEMPLATE = "<!-- WORKFLOW:{workflow} -->"
# The marker sits on its own line; matching to the line end keeps names such
# as "deploy --> prod" whole.
_TAG_RE = re.compile(r"^<!-- WORKFLOW:(.*) -->$", re.MULTILINE)


def make_signature(head_commit: str) -> str:
    """Return the marker that identifies the managed comment for a commit."""
    return _SIGNATURE_TEMPLATE.format(head_commit=head_commit)


def make_tag(workflow: str) -> str:
    return _TAG_TEMPLATE.format(workflow=workflow)


@dataclass(frozen=True)
class Section:
    """A block of comment text owned by one workflow.

    ``owner`` is parsed from the first ownership marker line in ``text``; pieces
    without a marker have no owner and are carried through untouched.
    """

    text: str
    owner: str | None = None

    @classmethod
    def from_text(cls, text: str) -> Section:
        match = _TAG_RE.search(text)
        return cls(text=text, owner=match.group(1) if match else None)


def parse_body(body: str | None, signature: str) -> list[Section]:
    """Split a comment body into its sections, dropping the signature line.

    No validation is done: whatever the split produces is returned, in order.
    """
    pieces = (body or "").split(SEPARATOR)
    return [Section.from_text(piece) for piece in pieces if signature not in piece]


def render_body(sections: Iterable[Section], signature: str) -> str:
    """Join ``sections`` behind ``signature`` into a comment body."""
    return SEPARATOR.join([signature, *(s.text for s in sections)])


def reconcile(new_section: Section, old_sections: Iterable[Section]) -> list[Section]:
    """Replace the section owned by ``new_section.owner`` in place, or append it.

    Only the first matching section is replaced; stray duplicates left by an
    earlier corruption are kept where they are.
    """
    merged: list[Section] = []
    replaced = False
    for old in old_sections:
        if not replaced and old.owner is not None and old.owner == new_section.owner:
            merged.append(new_section)
            replaced = True
        else:
            merged.append(old)

    if not replaced:
        merged.append(new_section)
    return merged
