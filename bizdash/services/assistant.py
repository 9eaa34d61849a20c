"""LLM helpers behind the assist endpoints: prompts, emails, task drafts."""

from __future__ import annotations

import logging

from bizdash.core.config import get_settings
from bizdash.models.prompt import PromptType
from bizdash.services import llm

logger = logging.getLogger(__name__)

PROMPT_MAX_TOKENS = 800
EMAIL_MAX_TOKENS = 500
SUMMARY_MAX_TOKENS = 500
TITLE_MAX_TOKENS = 50
CHAT_MAX_TOKENS = 200
TASK_MAX_TOKENS = 600

INCOMPLETE = "incomplete"
TASK_FIELDS = ("title", "body", "assignee", "priority", "status", "due")

_PROMPT_JSON_SHAPE = """Your response should be in JSON format with these fields:
{
  "title": "The instruction set title",
  "description": "A brief description of what these instructions do",
  "prompt": "Detailed instructions for how to handle the email, including tone, style, key points to address, and any specific requirements. For response prompts, explain how to analyze the incoming email and craft an appropriate response. For rewrite prompts, explain how to improve and modify the email content."
}"""

GENERATE_PROMPT_SYSTEM = """You are an expert at creating email handling instructions. The user will describe what kind of email prompt they want, and you will generate:
1. A clear, concise title for the instruction set
2. A helpful description explaining what these instructions are for. Keep this short and concise.
3. The actual instructions that will guide the AI in how to {verb} an email

{shape}

Make the instructions detailed and effective, focusing on HOW to handle the email rather than providing a template response."""

EDIT_PROMPT_SYSTEM = """You are an expert at editing email handling instructions. You will be given a current set of instructions and a request for how to modify them.
Your task is to edit the instructions according to the request while maintaining their effectiveness.

You should return:
1. An updated title if the changes warrant it
2. An updated description explaining what these instructions are for
3. The modified instructions that will guide the AI in how to {verb} an email

{shape}

Make sure the edited instructions remain detailed and effective, focusing on HOW to handle the email rather than providing a template response."""

EMAIL_SYSTEM = "You are a professional email writer. Write clear, concise, and professional emails."

SUMMARIZE_SYSTEM = (
    "The user has provided you with some scattered notes for instructions for a "
    "task. Improve these instructions. Use good spacing and very simple formatting. "
    "Do not include a title. Don't write it out as steps. Just use the information "
    "provided to create a concise and easy to read task brief."
)

TITLE_SYSTEM = (
    "Generate a brief, clear title (maximum 8 words) that captures the main point "
    "of this text. The title should be in title case and should not end with "
    "punctuation."
)

TASK_SYSTEM = """You are a task creation assistant. You analyze task descriptions and extract key information to create structured tasks.
Available assignees are: {assignees}

For each field:
- If you can confidently determine the value, provide it
- If you cannot determine the value, return "incomplete"
- For assignee, only use names from the available assignees list
- For priority, use only: "Low", "Medium", or "High"
- For status, use only: "To Do", "In Progress", or "Completed"

Return a JSON object with:
{{
  "title": "Brief, clear task title",
  "body": "Detailed task description. Do not include the assignees name in the body. Use formatting to make it more readable.",
  "assignee": "Name from available assignees or 'incomplete'",
  "priority": "Priority level or 'incomplete'",
  "status": "Status or 'incomplete'",
  "due": "ISO date string or 'incomplete'",
  "missing_fields": ["List of fields marked incomplete"]
}}"""


def _verb(prompt_type: PromptType) -> str:
    return "respond to" if prompt_type == PromptType.RESPONSE else "rewrite"


def _prompt_fields(data: dict) -> dict[str, str]:
    return {
        "title": str(data.get("title") or ""),
        "description": str(data.get("description") or ""),
        "prompt": str(data.get("prompt") or ""),
    }


async def generate_prompt(text: str, prompt_type: PromptType) -> dict[str, str]:
    system = GENERATE_PROMPT_SYSTEM.format(verb=_verb(prompt_type), shape=_PROMPT_JSON_SHAPE)
    data = await llm.complete_json(
        [{"role": "system", "content": system}, {"role": "user", "content": text}],
        PROMPT_MAX_TOKENS,
    )
    return _prompt_fields(data)


async def edit_prompt(
    *,
    title: str,
    description: str | None,
    prompt: str,
    instruction: str,
    prompt_type: PromptType,
) -> dict[str, str]:
    system = EDIT_PROMPT_SYSTEM.format(verb=_verb(prompt_type), shape=_PROMPT_JSON_SHAPE)
    user = (
        "Current prompt:\n"
        f"Title: {title}\n"
        f"Description: {description or 'No description'}\n"
        f"Prompt: {prompt}\n\n"
        f"Instruction: {instruction}"
    )
    data = await llm.complete_json(
        [{"role": "system", "content": system}, {"role": "user", "content": user}],
        PROMPT_MAX_TOKENS,
    )
    return _prompt_fields(data)


async def generate_email(text: str, prompt: str) -> str:
    return await llm.complete(
        [
            {"role": "system", "content": EMAIL_SYSTEM},
            {"role": "user", "content": f"{prompt}\n\n{text}"},
        ],
        EMAIL_MAX_TOKENS,
        model=get_settings().enrichment_llm_model,
    )


async def summarize(text: str) -> str:
    return await llm.complete(
        [{"role": "system", "content": SUMMARIZE_SYSTEM}, {"role": "user", "content": text}],
        SUMMARY_MAX_TOKENS,
    )


async def summarize_title(text: str) -> str:
    return await llm.complete(
        [{"role": "system", "content": TITLE_SYSTEM}, {"role": "user", "content": text}],
        TITLE_MAX_TOKENS,
        model=get_settings().enrichment_llm_model,
    )


async def chat(messages: list[dict], system_message: str) -> str:
    return await llm.complete(
        [{"role": "system", "content": system_message}, *messages],
        CHAT_MAX_TOKENS,
    )


async def generate_task(description: str, assignees: list[str]) -> dict:
    """Draft task fields from free text.

    Unknown fields come back as ``"incomplete"`` and are listed in
    ``missing_fields``. An assignee outside ``assignees`` is treated as unknown.
    """
    system = TASK_SYSTEM.format(assignees=", ".join(assignees) or "none")
    data = await llm.complete_json(
        [{"role": "system", "content": system}, {"role": "user", "content": description}],
        TASK_MAX_TOKENS,
    )

    draft: dict = {}
    for field in TASK_FIELDS:
        value = data.get(field)
        draft[field] = str(value).strip() if value else INCOMPLETE
    if draft["assignee"] != INCOMPLETE and draft["assignee"] not in assignees:
        logger.info("Discarding unknown assignee %r from task draft", draft["assignee"])
        draft["assignee"] = INCOMPLETE

    draft["missing_fields"] = [f for f in TASK_FIELDS if draft[f] == INCOMPLETE]
    return draft
