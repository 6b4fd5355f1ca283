# aiplacement/services/text_processor.py
import re
from typing import List

from fastapi.concurrency import run_in_threadpool

from aiplacement.models.enums import TextAction
from aiplacement.services import file_extractor
from aiplacement.services.llm_client import BackendError
from aiplacement.services.prompt_library import TEXT_ACTIONS
from aiplacement.utils.config import settings
from aiplacement.utils.logger import logger

_HTML_FENCE_START_RE = re.compile(r"```html\s*", re.IGNORECASE)
_FENCE_END_RE = re.compile(r"```\s*$")


def extract_html(response: str) -> str:
    html = _HTML_FENCE_START_RE.sub("", response or "")
    html = _FENCE_END_RE.sub("", html)
    return html.strip()


def enabled_actions() -> List[TextAction]:
    disabled = set(settings.textprocessor_disabled_actions)
    return [action for action in TextAction if action.value not in disabled]


def describe_actions() -> List[dict]:
    return [
        {
            "action": action.value,
            "name": TEXT_ACTIONS[action].name,
            "icon": TEXT_ACTIONS[action].icon,
            "description": TEXT_ACTIONS[action].description,
            "default": TEXT_ACTIONS[action].default,
        }
        for action in enabled_actions()
    ]


class TextProcessor:
    async def process(self, backend, text: str, action: str) -> dict:
        if not text or not text.strip():
            return {"html": "", "success": False, "message": "Empty text"}

        try:
            text_action = TextAction(action)
        except ValueError:
            return {"html": "", "success": False, "message": f"Unknown action: {action}"}
        if text_action not in enabled_actions():
            return {"html": "", "success": False, "message": f"Action is disabled: {action}"}

        prompt = TEXT_ACTIONS[text_action].prompt.format(text=text)
        try:
            response = await backend.chat([{"role": "user", "content": prompt}])
        except BackendError as e:
            logger.error(f"Text processor error ({action}): {e}")
            return {"html": "", "success": False, "message": str(e)}

        return {"html": extract_html(response), "success": True, "message": ""}

    async def process_file(self, backend, content: str, filename: str, action: str) -> dict:
        """Runs an action on the text of a base64-encoded file, as sent by the editor button."""
        if not content or not content.strip():
            return {"html": "", "success": False, "message": "Empty text"}
        if not file_extractor.is_supported(filename):
            return {"html": "", "success": False, "message": f"Unsupported file type: {filename}"}

        try:
            text = await run_in_threadpool(file_extractor.extract_from_base64, content, filename)
        except ValueError as e:
            return {"html": "", "success": False, "message": str(e)}
        except Exception as e:
            logger.warning(f"Could not extract text from '{filename}': {e}")
            return {"html": "", "success": False, "message": "Could not read the file."}

        if not text:
            return {"html": "", "success": False, "message": "No text found in the file."}
        logger.info(f"Extracted {len(text)} characters from '{filename}' for action '{action}'.")
        return await self.process(backend, text, action)


text_processor = TextProcessor()
