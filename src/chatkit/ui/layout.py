"""Pure layout decisions for rendering message groups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from chatkit.core.config import ChatAlignment, ChatSettings
from chatkit.core.timestamps import parse_timestamp
from chatkit.models.group import MessageGroup
from chatkit.state.session import ChatSession


@dataclass(frozen=True, slots=True)
class GroupRow:
    """One rendered group plus what goes above it.

    ``divider_label`` is set when a date divider precedes the group;
    otherwise a plain gap is drawn.
    """

    group: MessageGroup
    divider_label: Optional[str]
    profile_leading: bool


def format_date_label(timestamp: str, date_format: str) -> str:
    parsed = parse_timestamp(timestamp)
    if parsed is None:
        return timestamp
    return parsed.strftime(date_format)


def profile_leading(group: MessageGroup, alignment: ChatAlignment) -> bool:
    """Whether the avatar sits before the bubbles for this group."""
    if group.is_outgoing:
        return alignment is ChatAlignment.START
    return alignment is ChatAlignment.END


def build_rows(
    session: ChatSession,
    groups: Sequence[MessageGroup],
    settings: Optional[ChatSettings] = None,
) -> List[GroupRow]:
    settings = settings or session.settings
    rows: List[GroupRow] = []
    previous: Optional[MessageGroup] = None
    for group in groups:
        first = group.first_message
        if first is None:
            continue
        label = None
        if previous is None or session.is_date_changed(previous.messages[0], first):
            label = format_date_label(first.timestamp, settings.date_format)
        rows.append(
            GroupRow(
                group=group,
                divider_label=label,
                profile_leading=profile_leading(group, settings.sender_alignment),
            )
        )
        previous = group
    return rows
