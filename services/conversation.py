"""
services/conversation.py
------------------------
The conversation state machine behind every multi-step wizard.

A wizard is declared as an ordered tuple of Steps. Each Step names the
state it handles, how it parses the user's answer, which draft field the
answer is written to and the prompt shown when the step is entered. The
step after it is its successor; after the last step the wizard's
`finish` coroutine performs the API call.

Rules enforced here:
    - Invalid input re-prompts and leaves the Session untouched.
    - A Session is written with a single `put` after the prompt for the
      next step has been sent, or not at all.
    - A failed `finish` leaves the Session exactly as it was, so the user
      can retry the last step without re-entering earlier answers.
    - Success and cancel clear the Session.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from models.drafts import Draft
from models.session import Session, SessionState, Wizard
from models.update import InboundUpdate, Reply
from repositories.session_store import SessionStore
from services.api_client import ApiError
from services.parsers import InputError
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)

DEFAULT_HELP_TEXT = "I didn't understand that. Try /help for available commands."
STALE_BUTTON_TEXT = "This button is no longer active."
BROKEN_SESSION_TEXT = "Something went wrong with this conversation, so I reset it. Please start again."


class InputSource(str, Enum):
    TEXT = "text"
    CALLBACK = "callback"


class _Skip:
    def __repr__(self) -> str:
        return "SKIP"


# Fed instead of text when the user sends /skip.
SKIP = _Skip()

Prompt = Union[Reply, Callable[[Any], Reply], None]
Finish = Callable[["BotContext", InboundUpdate, Any], Awaitable[Reply]]


@dataclass(frozen=True)
class Step:
    """
    One wizard state.

    Attributes:
        state: The SessionState this step handles.
        field: Draft attribute the parsed answer is written to.
        parse: Turns the raw answer into a value; raises InputError.
        prompt: Sent when the wizard enters this step. A callable gets
            the draft collected so far.
        hint: Sent when the answer is invalid or arrives the wrong way.
        source: Whether the answer comes as text or as a button press.
        optional: Whether /skip may answer this step.
        ack: Callback acknowledgment text for accepted button presses.
    """
    state: SessionState
    field: str
    parse: Callable[[str], Any]
    hint: str
    prompt: Prompt = None
    source: InputSource = InputSource.TEXT
    optional: bool = False
    ack: str = ""

    def render_prompt(self, draft: Draft) -> Optional[Reply]:
        if self.prompt is None:
            return None
        if isinstance(self.prompt, Reply):
            return self.prompt
        return self.prompt(draft)


@dataclass(frozen=True)
class WizardFlow:
    wizard: Wizard
    draft_type: type
    steps: tuple[Step, ...]
    finish: Finish
    failure_text: str


class ConversationStateMachine:
    """Routes an answer to the step registered for the user's current state."""

    def __init__(self, store: SessionStore):
        self._store = store
        self._flows: dict[Wizard, WizardFlow] = {}
        self._steps: dict[SessionState, tuple[WizardFlow, int]] = {}

    def register(self, flow: WizardFlow) -> None:
        if flow.wizard in self._flows:
            raise ValueError(f"wizard {flow.wizard.value} is already registered")
        if not flow.steps:
            raise ValueError(f"wizard {flow.wizard.value} has no steps")
        for index, step in enumerate(flow.steps):
            if step.state is SessionState.NONE or step.state in self._steps:
                raise ValueError(f"state {step.state.value} cannot be registered twice")
            if not hasattr(flow.draft_type(), step.field):
                raise ValueError(f"{flow.draft_type.__name__} has no field {step.field}")
            self._steps[step.state] = (flow, index)
        self._flows[flow.wizard] = flow

    @property
    def states(self) -> list[SessionState]:
        return list(self._steps)

    def step_for(self, state: SessionState) -> Optional[Step]:
        located = self._steps.get(state)
        return located[0].steps[located[1]] if located else None

    def begin(self, user_id: int, wizard: Wizard) -> Session:
        """Start (or restart) a wizard at its first step with an empty draft."""
        flow = self._flows[wizard]
        session = Session(
            user_id=user_id,
            state=flow.steps[0].state,
            wizard=wizard,
            data=flow.draft_type(),
        )
        logger.info(f"User {user_id} started the {wizard.value} wizard")
        return self._store.put(session)

    def first_prompt(self, wizard: Wizard) -> Optional[Reply]:
        flow = self._flows[wizard]
        return flow.steps[0].render_prompt(flow.draft_type())

    def cancel(self, user_id: int) -> bool:
        return self._store.clear(user_id)

    async def feed(self, ctx: "BotContext", update: InboundUpdate, raw: Any,
                   source: InputSource, expected: Optional[SessionState] = None) -> None:
        """
        Hand one answer to the step the user is currently in.

        Args:
            raw: Message text, callback argument, or SKIP.
            source: How the answer arrived.
            expected: For button presses, the state the button belongs to.
        """
        session = self._store.get(update.user_id)
        if session is None or not session.is_active:
            if source is InputSource.CALLBACK:
                await ctx.acknowledge(update, STALE_BUTTON_TEXT)
            else:
                await ctx.reply(update, DEFAULT_HELP_TEXT)
            return

        located = self._steps.get(session.state)
        if located is None or located[0].wizard is not session.wizard:
            logger.error(
                f"User {update.user_id} is in state {session.state.value} "
                f"with no registered step; resetting the session"
            )
            self._store.clear(update.user_id)
            await ctx.reply(update, BROKEN_SESSION_TEXT)
            return

        flow, index = located
        step = flow.steps[index]

        if expected is not None and expected is not session.state:
            logger.debug(f"Stale button from user {update.user_id}: expected {expected.value}, in {session.state.value}")
            await ctx.acknowledge(update, STALE_BUTTON_TEXT)
            return

        if raw is SKIP:
            if not step.optional:
                await ctx.reply(update, f"This step can't be skipped.\n\n{step.hint}")
                return
            value = None
        elif source is not step.source:
            await ctx.reply(update, step.hint)
            return
        else:
            try:
                value = step.parse(raw)
            except InputError as e:
                logger.debug(f"Rejected input from user {update.user_id} in {step.state.value}: {e}")
                await ctx.reply(update, step.hint)
                return

        data = replace(session.data, **{step.field: value})
        if step.ack:
            await ctx.acknowledge(update, step.ack)

        if index + 1 < len(flow.steps):
            successor = flow.steps[index + 1]
            prompt = successor.render_prompt(data)
            if prompt is not None:
                await ctx.reply(update, prompt)
            self._store.put(session.advance(successor.state, data))
            return

        await self._finish(ctx, update, flow, data)

    async def _finish(self, ctx: "BotContext", update: InboundUpdate,
                      flow: WizardFlow, data: Draft) -> None:
        try:
            result = await flow.finish(ctx, update, data)
        except ApiError as e:
            logger.error(f"{flow.wizard.value} wizard failed for user {update.user_id}: {e}")
            await ctx.reply(update, flow.failure_text)
            return

        # The record exists now; forget the wizard even if the reply fails.
        self._store.clear(update.user_id)
        logger.info(f"User {update.user_id} completed the {flow.wizard.value} wizard")
        await ctx.reply(update, result)


def callback_input(state: SessionState):
    """Callback route handler that answers `state` with the payload argument."""

    async def handler(ctx: "BotContext", update: InboundUpdate, arg: str) -> None:
        await ctx.machine.feed(ctx, update, arg, InputSource.CALLBACK, expected=state)

    handler.__name__ = f"answer_{state.value}"
    return handler
