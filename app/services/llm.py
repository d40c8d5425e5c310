import json

from openai import AsyncOpenAI

from app.core.config import settings

_client: AsyncOpenAI | None = None

MAX_HISTORY_MESSAGES = 20


def get_client() -> AsyncOpenAI:
    """OpenAI client, created on first use so the API key stays optional."""
    global _client
    if _client is None:
        _client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.OPENAI_TIMEOUT_SECONDS,
        )
    return _client


async def call_llm_with_history(
    system_prompt: str,
    messages: list[dict],
    temperature: float = 0.7,
    model: str | None = None
) -> str:
    """
    Call OpenAI API with full conversation history.

    Args:
        system_prompt: Instructions for the AI
        messages: List of {"role": "user"|"assistant", "content": "..."}
        temperature: Creativity level
        model: Which OpenAI model to use (defaults to OPENAI_MODEL)

    Returns:
        The AI's response as a string
    """
    full_messages = [{"role": "system", "content": system_prompt}] + messages

    response = await get_client().chat.completions.create(
        model=model or settings.OPENAI_MODEL,
        messages=full_messages,
        temperature=temperature
    )

    return response.choices[0].message.content


def build_business_prompt(profile) -> str:
    """System prompt for the auto-responder, built from what the owner configured."""
    products = [
        {"name": p.get("name"), "price": p.get("price"), "description": p.get("description")}
        for p in (profile.products or [])
    ]
    faqs = [
        {"question": f.get("question"), "answer": f.get("answer")}
        for f in (profile.faqs or [])
    ]

    return f"""You are the customer service assistant of "{profile.name}".
Answer the customer briefly, politely and in the customer's language.
Only use the information below. If you don't know, say the owner will reply soon.

About the business:
{profile.ai_business_info or profile.description or ""}

Currency: {profile.currency or ""}
Products: {json.dumps(products, ensure_ascii=False)}
FAQ: {json.dumps(faqs, ensure_ascii=False)}
Return policy: {profile.return_policy or ""}
Delivery policy: {profile.delivery_policy or ""}"""


async def generate_auto_reply(profile, history: list[dict]) -> str | None:
    """
    Reply on the owner's behalf.

    history is [{"sender": "customer"|"owner", "text": "..."}] oldest first.
    Returns None when no API key is configured.
    """
    if not settings.OPENAI_API_KEY:
        return None

    messages = [
        {"role": "user" if m["sender"] == "customer" else "assistant", "content": m["text"]}
        for m in history[-MAX_HISTORY_MESSAGES:]
    ]

    reply = await call_llm_with_history(build_business_prompt(profile), messages, temperature=0.4)
    return reply.strip() if reply else None
