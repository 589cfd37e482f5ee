from typing import Any
from datetime import datetime, timezone
import json
import uuid
from openai import OpenAI
from command_center.config import settings
from command_center.logging_setup import log_event

TASK_TYPES = ("generate-outline", "generate-facts", "generate-content", "generate-seo", "summarize")

SYSTEM_PROMPT = "You are an editorial assistant for a professional publishing team. Always answer with a single JSON object."

def get_client():
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY is missing. Please set it in your environment or .env file.")
    return OpenAI(api_key=settings.openai_api_key)

def _outline_prompt(payload: dict[str, Any]) -> str:
    keywords = ", ".join(payload.get("keywords") or []) or "none"
    return f"""
    Create a blog article outline.
    Topic: {payload['topic']}
    Keywords: {keywords}
    Target audience: {payload.get('target_audience') or 'general readers'}
    Tone: {payload.get('tone', 'professional')}
    Length: {payload.get('length', 'medium')}

    Return JSON:
    {{
        "title": "article title",
        "sections": [{{"heading": "...", "subheadings": ["..."], "key_points": ["..."]}}],
        "estimated_word_count": 1500
    }}
    """

def _facts_prompt(payload: dict[str, Any]) -> str:
    sources = "\n".join(f"- {s}" for s in payload.get("sources") or []) or "- none provided"
    return f"""
    List {payload.get('fact_count', 10)} verifiable facts for an article.
    Topic: {payload['topic']}
    Outline: {payload.get('outline') or 'N/A'}
    Preferred sources:
    {sources}

    Only include facts you are confident about. Do NOT fabricate sources.
    Return JSON:
    {{
        "facts": [{{"statement": "...", "source": "url or null", "confidence": 0.9, "category": "statistic|definition|history|general"}}],
        "total_count": 10
    }}
    """

def _content_prompt(payload: dict[str, Any]) -> str:
    facts = "\n".join(f"- {f}" for f in payload.get("facts") or []) or "- none"
    return f"""
    Write an article draft in Markdown from this outline.
    Outline (JSON): {json.dumps(payload['outline'])}
    Approved facts (use only these as factual claims):
    {facts}
    Tone: {payload.get('tone', 'professional')}
    Target length: about {payload.get('length', 1000)} words

    Return JSON:
    {{
        "content": "markdown body",
        "word_count": 1000,
        "reading_time": 4,
        "key_points": ["..."]
    }}
    """

def _seo_prompt(payload: dict[str, Any]) -> str:
    keywords = ", ".join(payload.get("keywords") or []) or "none"
    return f"""
    Write search and social metadata for this article.
    Title: {payload['title']}
    Target keyword: {payload.get('target_keyword') or 'none'}
    Keywords: {keywords}
    Content:
    {payload['content'][:4000]}

    Keep the meta description between 120 and 160 characters and include the target keyword when one is given.
    Return JSON:
    {{
        "title": "SEO title under 60 characters",
        "description": "meta description",
        "keywords": ["..."],
        "og_title": "...",
        "og_description": "...",
        "twitter_title": "...",
        "twitter_description": "...",
        "canonical_url": "url or null"
    }}
    """

def _summary_prompt(payload: dict[str, Any]) -> str:
    style = "a bulleted list" if payload.get("format") == "bullets" else "one paragraph"
    return f"""
    Summarize the text below as {style}.
    Length: {payload.get('length', 'medium')}
    Text:
    {payload['content']}

    Return JSON:
    {{
        "summary": "...",
        "key_points": ["..."],
        "word_count": 120
    }}
    """

PROMPTS = {
    "generate-outline": _outline_prompt,
    "generate-facts": _facts_prompt,
    "generate-content": _content_prompt,
    "generate-seo": _seo_prompt,
    "summarize": _summary_prompt,
}

def _complete(prompt: str) -> dict[str, Any]:
    client = get_client()
    response = client.chat.completions.create(
        model=settings.openai_model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        response_format={"type": "json_object"},
    )
    return json.loads(response.choices[0].message.content)

def _normalize(task_type: str, output: dict[str, Any]) -> dict[str, Any]:
    if task_type == "generate-facts":
        facts = [f for f in output.get("facts") or [] if isinstance(f, dict) and f.get("statement")]
        for f in facts:
            f.setdefault("category", "general")
            f["confidence"] = min(max(float(f.get("confidence") or 0), 0.0), 1.0)
        output["facts"] = facts
        output["total_count"] = len(facts)
    elif task_type == "generate-outline":
        output.setdefault("sections", [])
    elif task_type == "generate-seo":
        output["keywords"] = list(output.get("keywords") or [])
        output.setdefault("canonical_url", None)
        # Social cards fall back to the search title and description
        for prefix in ("og", "twitter"):
            output[f"{prefix}_title"] = output.get(f"{prefix}_title") or output.get("title")
            output[f"{prefix}_description"] = output.get(f"{prefix}_description") or output.get("description")
    elif task_type == "summarize":
        output["key_points"] = list(output.get("key_points") or [])
        output["word_count"] = len((output.get("summary") or "").split())
    return output

def run_task(task_type: str, payload: dict[str, Any]) -> dict[str, Any]:
    """
    Runs one AI generation task and returns the task record.
    Failures are reported on the record (status "failed"), never raised.
    """
    if task_type not in TASK_TYPES:
        raise ValueError(f"Unknown AI task type: {task_type}")

    now = datetime.now(timezone.utc)
    task = {
        "id": uuid.uuid4().hex,
        "type": task_type,
        "status": "running",
        "input": payload,
        "output": None,
        "error": None,
        "created_at": now,
        "updated_at": now,
    }

    try:
        output = _complete(PROMPTS[task_type](payload))
        task["output"] = _normalize(task_type, output)
        task["status"] = "completed"
    except Exception as e:
        task["status"] = "failed"
        task["error"] = str(e)
        log_event("ai_task_failed", level="error", task_id=task["id"], task_type=task_type, error=str(e))
    task["updated_at"] = datetime.now(timezone.utc)

    log_event("ai_task_finished", task_id=task["id"], task_type=task_type, status=task["status"])
    return task
