"""Generative answers from space history using a LangChain chat model."""

import time
from typing import Any, Optional
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from knowledge_assistant.config import AppConfig
from knowledge_assistant.models.message import Message
from knowledge_assistant.utils.errors import PredictionError
from knowledge_assistant.utils.logging import (
    get_structured_logger,
    sanitize_message_text,
)

logger = get_structured_logger(__name__)

QUESTION_PROMPT = """Does the message contain a question? Message: "{message}".
Answer 'yes' or 'no' only."""

ANSWER_PROMPT = """You are Jessica, an enthusiastic and helpful AI Knowledge Assistant with a warm, friendly personality.

Your role is to help new team members by answering questions based on previous conversations in the chat space.

When responding:
- Use a friendly, conversational tone with occasional emojis (1-2 per response) that match the context
- Structure your responses with proper spacing and paragraphs for readability
- Start responses with a brief greeting or acknowledgment
- End with a positive closing remark when appropriate
- Use bullet points for lists or multiple items
- If sharing technical information, make it clear and easy to understand

Based on the following conversation history: {history}, please answer this question: {question}.

If the conversation history doesn't provide an answer, respond with something like "I don't have that information yet 🔍 When the team discusses this topic, I'll learn and be able to help in the future!"

Remember to maintain your friendly personality in all responses. However, if the question is not related to the conversation history, respond with a sarcastic remark in Nigerian Pidgin."""


def get_llm_model(config: AppConfig) -> BaseChatModel:
    """Get the configured chat model."""
    provider = config.llm_provider.lower()

    logger.debug(
        "Getting LLM model",
        llm_provider=provider,
        llm_model=config.llm_model,
        llm_temperature=config.llm_temperature,
    )

    if provider == "anthropic":
        if not config.anthropic_api_key:
            raise PredictionError("ANTHROPIC_API_KEY not set")
        return ChatAnthropic(
            model=config.llm_model,
            api_key=config.anthropic_api_key,
            temperature=config.llm_temperature,
        )
    elif provider == "openai":
        if not config.openai_api_key:
            raise PredictionError("OPENAI_API_KEY not set")
        return ChatOpenAI(
            model=config.llm_model,
            api_key=config.openai_api_key,
            temperature=config.llm_temperature,
        )
    else:
        raise PredictionError(f"Unsupported LLM provider: {provider}")


def extract_text(content: Any) -> Optional[str]:
    """First text part of a chat model response, if any."""
    if isinstance(content, str):
        return content or None
    if isinstance(content, list):
        for part in content:
            if isinstance(part, str) and part:
                return part
            if isinstance(part, dict) and part.get("type") == "text" and part.get("text"):
                return part["text"]
    return None


class GenerativeAnswerService:
    """Question detection and grounded answers over one `predict` primitive."""

    def __init__(self, config: AppConfig, model: Optional[BaseChatModel] = None):
        self.config = config
        self.model = model if model is not None else get_llm_model(config)

    async def predict(self, prompt: str) -> str:
        """Send the prompt as a single user turn and return the generated text."""
        start_time = time.time()
        try:
            response = await self.model.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            logger.error(
                "LLM prediction failed",
                llm_provider=self.config.llm_provider,
                llm_model=self.config.llm_model,
                error=str(e),
            )
            raise PredictionError(f"Prediction request failed: {e}") from e

        text = extract_text(getattr(response, "content", None))
        if text is None:
            raise PredictionError("Prediction returned no text")

        logger.info(
            "LLM prediction completed",
            llm_provider=self.config.llm_provider,
            llm_model=self.config.llm_model,
            llm_latency_ms=round((time.time() - start_time) * 1000, 2),
            prompt_size_chars=len(prompt),
            response_preview=sanitize_message_text(text, max_length=100),
        )
        return text

    async def contains_question(self, message: str) -> bool:
        """
        Whether the message contains a question.

        Any response containing "yes" (case-insensitive, substring) counts
        as a question, so "Yesterday" would match as well.
        """
        response = await self.predict(QUESTION_PROMPT.format(message=message))
        return "yes" in response.lower()

    async def answer_question(self, question: str, messages: list[Message]) -> str:
        """Answer the question using only the given space history."""
        history = "\n\n".join(message.text for message in messages)
        prompt = ANSWER_PROMPT.format(history=history, question=question)
        return await self.predict(prompt)
