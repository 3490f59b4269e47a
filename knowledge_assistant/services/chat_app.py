"""Chat app logic: turns one Google Chat interaction event into one reply."""

from typing import Optional

from knowledge_assistant.config import AppConfig
from knowledge_assistant.models.chat_event import (
    AddedToSpaceEvent,
    CardClickedEvent,
    ChatEvent,
    MessageEvent,
    RemovedFromSpaceEvent,
)
from knowledge_assistant.models.reply import (
    CARD_CLICK_TEXT,
    WELCOME_TEXT,
    AnswerReply,
    ConfigRequestReply,
    EmptyReply,
    ReplyPayload,
    TextReply,
)
from knowledge_assistant.services.answer_service import GenerativeAnswerService
from knowledge_assistant.services.app_auth import AppCredentials
from knowledge_assistant.services.chat_api import AppAuthChatService, UserAuthChatService
from knowledge_assistant.services.events_api import AppAuthEventsService, UserAuthEventsService
from knowledge_assistant.services.supabase_client import SupabaseStore
from knowledge_assistant.services.user_auth import UserAuth
from knowledge_assistant.utils.errors import InvalidTokenError
from knowledge_assistant.utils.logging import (
    get_structured_logger,
    log_timing,
    mask_user_id,
    sanitize_message_text,
)

logger = get_structured_logger(__name__)


class ChatApp:
    """
    Dispatches Chat events to the added-to-space, message, removed-from-space
    and card-clicked flows.

    A user without stored OAuth tokens gets a REQUEST_CONFIG reply pointing at
    the authorization URL. Any other failure propagates to the caller.
    """

    def __init__(
        self,
        config: AppConfig,
        store: SupabaseStore,
        user_chat: UserAuthChatService,
        app_chat: AppAuthChatService,
        user_events: UserAuthEventsService,
        app_events: AppAuthEventsService,
        user_auth: UserAuth,
        answer_service: GenerativeAnswerService,
    ):
        self.config = config
        self.store = store
        self.user_chat = user_chat
        self.app_chat = app_chat
        self.user_events = user_events
        self.app_events = app_events
        self.user_auth = user_auth
        self.answer_service = answer_service

    @classmethod
    def from_config(cls, config: AppConfig) -> "ChatApp":
        """Wire the production collaborators."""
        store = SupabaseStore(config)
        user_auth = UserAuth(config, store)
        app_credentials = AppCredentials(config)
        return cls(
            config=config,
            store=store,
            user_chat=UserAuthChatService(config, user_auth),
            app_chat=AppAuthChatService(config, app_credentials),
            user_events=UserAuthEventsService(config, user_auth),
            app_events=AppAuthEventsService(config, app_credentials),
            user_auth=user_auth,
            answer_service=GenerativeAnswerService(config),
        )

    async def handle_event(self, event: ChatEvent) -> ReplyPayload:
        """Run the flow for the event type and return the reply to post."""
        match event:
            case AddedToSpaceEvent():
                return await self.handle_added_to_space(event)
            case MessageEvent():
                return await self.handle_message(event)
            case RemovedFromSpaceEvent():
                return await self.handle_removed_from_space(event)
            case CardClickedEvent():
                return await self.handle_card_clicked(event)
            case _:
                logger.debug("Ignoring unhandled event type", event_type=event.type)
                return EmptyReply()

    async def handle_added_to_space(self, event: AddedToSpaceEvent) -> ReplyPayload:
        """Save the space and its history, subscribe to it, and say hello."""
        space_name = event.space.name
        user_name = event.user.name
        logger.info(
            "Saving message history and subscribing to the space",
            space_name=space_name,
            user_name=mask_user_id(user_name),
        )
        await self.store.create_space(space_name)

        try:
            with log_timing("backfill_space_messages", logger=logger, space_name=space_name):
                messages = await self.user_chat.list_user_messages(space_name, user_name)
                await self.store.create_or_update_messages(space_name, messages)

            await self.user_events.create_space_subscription(space_name, user_name)
        except InvalidTokenError as e:
            return self._request_config(e, user_name, event.config_complete_redirect_url)

        return TextReply(text=WELCOME_TEXT)

    async def handle_message(self, event: MessageEvent) -> ReplyPayload:
        """Save the message and, if it asks a question, answer from history."""
        space_name = event.space.name
        user_name = event.user.name
        logger.info(
            "Processing message event",
            space_name=space_name,
            message_name=event.message.name,
            message_preview=sanitize_message_text(event.message.text, max_length=100),
        )

        try:
            await self.store.create_or_update_message(space_name, event.message.to_message())

            if not await self.answer_service.contains_question(event.message.text):
                logger.info("Message is not a question", message_name=event.message.name)
                return EmptyReply()

            with log_timing("answer_question", logger=logger, space_name=space_name):
                history = await self.store.list_messages(space_name)
                answer = await self.answer_service.answer_question(event.message.text, history)
        except InvalidTokenError as e:
            return self._request_config(e, user_name, event.config_complete_redirect_url)

        return AnswerReply(text=answer)

    async def handle_removed_from_space(self, event: RemovedFromSpaceEvent) -> ReplyPayload:
        """Drop the space's subscriptions and its stored history."""
        space_name = event.space.name
        logger.info("Deleting space subscriptions and message history", space_name=space_name)

        await self.app_events.delete_space_subscriptions(space_name)
        await self.store.delete_space(space_name)
        return EmptyReply()

    async def handle_card_clicked(self, event: CardClickedEvent) -> ReplyPayload:
        """Ask the space manager to pick up the question."""
        space_name = event.space.name
        logger.info("Handling card clicked event", space_name=space_name)

        text = CARD_CLICK_TEXT
        manager_name = await self.app_chat.list_space_manager(space_name)
        if manager_name:
            text = f"<{manager_name}> {text}"
        return TextReply(text=text)

    def _request_config(
        self,
        error: InvalidTokenError,
        user_name: str,
        redirect_url: Optional[str],
    ) -> ConfigRequestReply:
        # No usable refresh token for the user: ask Chat to run the OAuth flow
        logger.info(
            "Requesting user authorization",
            user_name=mask_user_id(user_name),
            reason=error.reason,
        )
        return ConfigRequestReply(url=self.user_auth.generate_auth_url(user_name, redirect_url))
