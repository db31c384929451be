"""Paged member selection menu."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

import discord

from nswg.discord_bot.utils.members import GuildMember

logger = logging.getLogger(__name__)

MEMBER_VALUE_PREFIX = "member_"
PAGE_VALUE_PREFIX = "page_"
OPTION_TEXT_LIMIT = 100


class SelectionOutcome(StrEnum):
    """Terminal states of a member selection."""

    SELECTED = "selected"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class MemberSelection:
    """Result of :func:`select_member`; ``member`` is set only when selected."""

    outcome: SelectionOutcome
    member: GuildMember | None = None
    value: str | None = None


def _truncate(text: str, limit: int = OPTION_TEXT_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def page_count(total_members: int, page_size: int) -> int:
    return max(1, math.ceil(total_members / page_size))


def build_member_page(
    members: Sequence[GuildMember], page: int, page_size: int
) -> list[discord.SelectOption]:
    """Build the options for one page, plus a "Next Page" entry if more remain."""
    start = page * page_size
    items = members[start : start + page_size]

    options = [
        discord.SelectOption(
            label=_truncate(member.display_name or str(member.id)),
            value=f"{MEMBER_VALUE_PREFIX}{member.id}",
            description=_truncate(f"View attendance for {member.display_name}"),
        )
        for member in items
    ]

    if len(members) > start + page_size:
        next_first = start + page_size + 1
        next_last = min(start + page_size * 2, len(members))
        options.append(
            discord.SelectOption(
                label="Next Page",
                value=f"{PAGE_VALUE_PREFIX}{page + 1}",
                description=f"View more members ({next_first}-{next_last})",
            )
        )

    return options


class MemberSelect(discord.ui.Select["MemberSelectView"]):
    """Dropdown of members for the current page."""

    def __init__(self, options: list[discord.SelectOption]) -> None:
        super().__init__(
            custom_id="member-select",
            placeholder="Select a member",
            min_values=1,
            max_values=1,
            options=options,
            row=0,
        )

    async def callback(self, interaction: discord.Interaction) -> None:
        view = self.view
        if view is None:
            return
        view.choice = self.values[0]
        await interaction.response.defer()
        view.stop()


class MemberSelectView(discord.ui.View):
    """One page of the member picker, usable only by the requesting user."""

    def __init__(
        self,
        requester_id: int,
        options: list[discord.SelectOption],
        *,
        timeout: float,
    ) -> None:
        super().__init__(timeout=timeout)
        self.requester_id = requester_id
        self.choice: str | None = None
        self.cancelled = False
        self.add_item(MemberSelect(options))

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.requester_id:
            await interaction.response.send_message(
                "❌ This menu belongs to someone else.", ephemeral=True
            )
            return False
        return True

    @discord.ui.button(label="Cancel", style=discord.ButtonStyle.secondary, row=1)
    async def cancel(
        self, interaction: discord.Interaction, button: discord.ui.Button
    ) -> None:
        self.cancelled = True
        await interaction.response.defer()
        self.stop()


def _parse_page(value: str, last_page: int) -> int:
    try:
        page = int(value.removeprefix(PAGE_VALUE_PREFIX))
    except ValueError:
        logger.warning("Ignoring malformed page selection value=%s", value)
        return 0
    return min(max(page, 0), last_page)


async def select_member(
    interaction: discord.Interaction,
    members: Sequence[GuildMember],
    *,
    page_size: int,
    timeout: float,
) -> MemberSelection:
    """Show the paged picker on the deferred reply until a terminal outcome.

    Paging is an explicit loop over the page index; each page waits up to
    ``timeout`` seconds for a choice.
    """
    members_by_value = {f"{MEMBER_VALUE_PREFIX}{member.id}": member for member in members}
    total_pages = page_count(len(members), page_size)
    page = 0

    while True:
        view = MemberSelectView(
            interaction.user.id,
            build_member_page(members, page, page_size),
            timeout=timeout,
        )
        await interaction.edit_original_response(
            content=(
                "Select a member to view their attendance "
                f"(page {page + 1}/{total_pages}):"
            ),
            view=view,
        )

        timed_out = await view.wait()
        if timed_out:
            return MemberSelection(outcome=SelectionOutcome.TIMED_OUT)
        if view.cancelled or view.choice is None:
            return MemberSelection(outcome=SelectionOutcome.CANCELLED)

        choice = view.choice
        if choice.startswith(PAGE_VALUE_PREFIX):
            page = _parse_page(choice, total_pages - 1)
            continue

        return MemberSelection(
            outcome=SelectionOutcome.SELECTED,
            member=members_by_value.get(choice),
            value=choice,
        )
