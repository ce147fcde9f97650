import logging
import time

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from low_energy_ai.config import settings
from low_energy_ai.data_objs.chat_objs import ChatMessage, ChatReply
from low_energy_ai.llms.llm_model_factory.llm_factory import create_llm, token_limit_kwargs
from low_energy_ai.llms.tier_selector.models import ModelTier
from low_energy_ai.utils.session import SessionContext

logger = logging.getLogger(__name__)
# Completion call with retry. Only a successful reply reaches the session.


class ChatCompletionError(RuntimeError):
    """The completion API failed or returned nothing usable."""


def build_messages(history: list[ChatMessage], user_message: str, system_prompt: str | None = None) -> list[BaseMessage]:
    """System prompt, then the conversation so far, then the new user turn."""
    messages: list[BaseMessage] = [SystemMessage(content=system_prompt or settings.SYSTEM_PROMPT)]
    for message in history:
        if message.role == "user":
            messages.append(HumanMessage(content=message.content))
        else:
            messages.append(AIMessage(content=message.content))
    messages.append(HumanMessage(content=user_message))
    return messages


def _extract_token_usage(response: AIMessage) -> dict | None:
    """Extract token usage information from LLM response.

    Returns:
        dict with 'input_tokens', 'output_tokens', 'total_tokens' or None if not available
    """
    if getattr(response, 'usage_metadata', None):
        return {
            'input_tokens': response.usage_metadata.get('input_tokens', 0),
            'output_tokens': response.usage_metadata.get('output_tokens', 0),
            'total_tokens': response.usage_metadata.get('total_tokens', 0),
        }

    meta = getattr(response, 'response_metadata', None)
    if meta and 'token_usage' in meta:
        tokens = meta['token_usage']
        return {
            'input_tokens': tokens.get('prompt_tokens', 0),
            'output_tokens': tokens.get('completion_tokens', 0),
            'total_tokens': tokens.get('total_tokens', 0),
        }

    return None


async def _invoke_with_retry(llm, messages, model_name) -> AIMessage:
    """Single attempt; the tenacity wrapper below retries it."""
    logger.debug(f"Invoking [{model_name}]")
    return await llm.ainvoke(messages)


_invoke_with_retry = retry(
    stop=stop_after_attempt(settings.CHAT_MAX_RETRY),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(Exception),
    reraise=True
)(_invoke_with_retry)


async def complete_chat(tier: ModelTier, history: list[ChatMessage], user_message: str) -> ChatReply:
    """Send one chat turn to a tier's model.

    Args:
        tier: Tier whose model id parameterises the request
        history: Earlier turns of the conversation
        user_message: The new user turn

    Returns:
        ChatReply with the assistant text, timing and token usage

    Raises:
        ChatCompletionError: If the call fails after retries or the reply is empty
    """
    llm_kwargs = {}
    if settings.CHAT_TEMPERATURE is not None:
        llm_kwargs["temperature"] = settings.CHAT_TEMPERATURE
    llm = create_llm(tier.id, **llm_kwargs).bind(**token_limit_kwargs(tier.id))
    messages = build_messages(history, user_message)

    logger.info(f"Calling LLM: {tier.id} ({len(messages)} messages)")
    start_time = time.time()
    try:
        response = await _invoke_with_retry(llm, messages, tier.id)
    except Exception as e:
        logger.error(f"Model {tier.id} failed after retries: {e}")
        raise ChatCompletionError(f"Completion failed for {tier.id}: {e}") from e
    elapsed = time.time() - start_time

    content = response.text
    if not content.strip():
        logger.error(f"Model {tier.id} returned an empty reply")
        raise ChatCompletionError(f"Empty reply from {tier.id}")

    token_usage = _extract_token_usage(response)
    if token_usage:
        logger.info(
            f"LLM call to [{tier.id}] completed in {elapsed:.3f}s | "
            f"Tokens: in {token_usage['input_tokens']}, out {token_usage['output_tokens']}, "
            f"total {token_usage['total_tokens']}"
        )
    else:
        logger.info(f"LLM call to [{tier.id}] completed in {elapsed:.3f}s")

    return ChatReply(
        reply=content,
        model_id=tier.id,
        elapsed_seconds=round(elapsed, 3),
        token_usage=token_usage,
    )


async def send_chat(session: SessionContext, user_message: str) -> ChatReply:
    """Route with the session's sliders, call the model, then credit the session.

    The session is only touched after a successful reply, so a failed or
    cancelled call leaves its history and savings unchanged.
    """
    tier = session.current_tier
    reply = await complete_chat(tier, session.history(), user_message)
    saved = session.record_completion(tier, user_message, reply.reply)
    return reply.model_copy(update={"saved": saved})
