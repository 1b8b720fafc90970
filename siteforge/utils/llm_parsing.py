"""
LLM Response Parsing for SiteForge

Turns the opaque text returned by the completion backend into a
ProjectArtifact. Parsing degrades through three named levels:

1. ``strict``   - the whole response is a JSON object
2. ``fenced``   - a fenced code block (or the largest balanced object in
                  the text) holds the JSON object
3. ``raw_text`` - the text itself is wrapped into a single HTML document

The last level always succeeds for non-empty text, so callers receive a
usable artifact whenever the backend produced anything at all.
"""

import html
import json
import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.artifact import DEFAULT_DOCUMENT_PATH, Provenance, ProjectArtifact

logger = logging.getLogger(__name__)


class ParseLevel(Enum):
    STRICT = "strict"
    FENCED = "fenced"
    RAW_TEXT = "raw_text"


@dataclass
class ParsedResponse:
    artifact: ProjectArtifact
    level: ParseLevel


# Single-document payload keys -> file paths
SINGLE_DOCUMENT_FILES = {
    "html": DEFAULT_DOCUMENT_PATH,
    "css": "styles.css",
    "js": "script.js",
}

RAW_TEXT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Generated Content</title>
    <style>
        body {{ font-family: Arial, sans-serif; padding: 20px; line-height: 1.6; }}
        .container {{ max-width: 800px; margin: 0 auto; }}
        .content {{ background: #f8f8f8; padding: 20px; border-radius: 8px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="content">
            <h1>Generated Content</h1>
            <p><strong>Prompt:</strong> {prompt}</p>
            <div>{body}</div>
        </div>
    </div>
</body>
</html>"""


class ResponseParser:
    """Three-tier parser for completion backend responses"""

    fenced_patterns = [
        r'```json\s*\n?(.*?)\n?\s*```',
        r'```\w*\s*\n?(.*?)\n?\s*```',
    ]

    def parse(self, response: str, request_text: str = "",
              provenance: Provenance = Provenance.DIRECT) -> Optional[ParsedResponse]:
        """Parse a response, returning None only for empty text"""
        if response is None or not response.strip():
            return None

        artifact = self.parse_strict(response, provenance)
        if artifact is not None:
            logger.debug(f"✅ Parsed response as strict JSON ({len(artifact.files)} files)")
            return ParsedResponse(artifact, ParseLevel.STRICT)

        artifact = self.parse_fenced(response, provenance)
        if artifact is not None:
            logger.info(f"✅ Extracted JSON from fenced/embedded block ({len(artifact.files)} files)")
            return ParsedResponse(artifact, ParseLevel.FENCED)

        logger.warning("⚠️ Response is not structured data, wrapping raw text into a single document")
        return ParsedResponse(self.wrap_raw_text(response, request_text, provenance), ParseLevel.RAW_TEXT)

    def parse_strict(self, response: str, provenance: Provenance = Provenance.DIRECT) -> Optional[ProjectArtifact]:
        """Level 1: the whole response must be a JSON object"""
        try:
            data = json.loads(response.strip())
        except json.JSONDecodeError:
            return None
        return self.artifact_from_data(data, provenance)

    def parse_fenced(self, response: str, provenance: Provenance = Provenance.DIRECT) -> Optional[ProjectArtifact]:
        """Level 2: JSON inside a fenced block, else the largest balanced object in the text"""
        candidates = []
        for pattern in self.fenced_patterns:
            for match in re.findall(pattern, response, re.DOTALL | re.IGNORECASE):
                candidates.append(match.strip())

        embedded = self._largest_json_object(response)
        if embedded:
            candidates.append(embedded)

        for candidate in candidates:
            for cleaning_strategy in (lambda s: s, self._clean_json_string):
                try:
                    data = json.loads(cleaning_strategy(candidate))
                except json.JSONDecodeError:
                    continue
                artifact = self.artifact_from_data(data, provenance)
                if artifact is not None:
                    return artifact
        return None

    def wrap_raw_text(self, response: str, request_text: str = "",
                      provenance: Provenance = Provenance.DIRECT) -> ProjectArtifact:
        """Level 3: wrap the raw text into a minimal single-file artifact"""
        body = html.escape(response.strip()).replace("\n", "<br>")
        document = RAW_TEXT_TEMPLATE.format(prompt=html.escape(request_text or ""), body=body)
        return ProjectArtifact(
            files={DEFAULT_DOCUMENT_PATH: document},
            description=f"Generated content for: {request_text}" if request_text else "Generated content",
            provenance=provenance,
        )

    def artifact_from_data(self, data: Any, provenance: Provenance = Provenance.DIRECT) -> Optional[ProjectArtifact]:
        """Normalise a decoded payload into an artifact; None if it carries no files"""
        if not isinstance(data, dict):
            return None

        files = self._extract_files_from_data(data)
        if not files:
            return None

        return ProjectArtifact(
            files=files,
            description=str(data.get("description") or ""),
            pages=self._string_list(data.get("pages")),
            features=self._string_list(data.get("features")),
            provenance=provenance,
            change_type=data.get("changeType") or data.get("change_type"),
            modified_files=self._string_list(data.get("modifiedFiles") or data.get("modified_files")),
        )

    def _extract_files_from_data(self, data: Dict[str, Any]) -> Dict[str, str]:
        for key in ("projectStructure", "project_structure", "files"):
            value = data.get(key)
            if isinstance(value, dict):
                files = {
                    str(path): content if isinstance(content, str) else json.dumps(content, indent=2)
                    for path, content in value.items()
                }
                if files:
                    return files
            elif isinstance(value, list):
                files = self._convert_file_list_to_dict(value)
                if files:
                    return files

        files = {}
        for key, path in SINGLE_DOCUMENT_FILES.items():
            content = data.get(key)
            if isinstance(content, str) and content.strip():
                files[path] = content
        return files

    def _convert_file_list_to_dict(self, file_list: List[Any]) -> Dict[str, str]:
        files = {}
        for item in file_list:
            if not isinstance(item, dict):
                continue
            path = item.get("path") or item.get("filename") or item.get("name")
            content = item.get("content") or item.get("code")
            if path and isinstance(content, str):
                files[str(path)] = content
        return files

    @staticmethod
    def _string_list(value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if isinstance(item, (str, int, float))]

    def _largest_json_object(self, text: str) -> Optional[str]:
        """Largest balanced {...} object in the text"""
        candidates = []
        for start_pos, char in enumerate(text):
            if char == '{':
                extracted = self._extract_json_object(text[start_pos:])
                if extracted:
                    candidates.append(extracted)
        if candidates:
            return max(candidates, key=len)
        return None

    def _extract_json_object(self, text: str) -> Optional[str]:
        """Extract the first complete JSON object from text starting with '{'"""
        brace_count = 0
        in_string = False
        escape_next = False

        for i, char in enumerate(text):
            if escape_next:
                escape_next = False
                continue

            if char == '\\':
                escape_next = True
                continue

            if char == '"':
                in_string = not in_string
                continue

            if not in_string:
                if char == '{':
                    brace_count += 1
                elif char == '}':
                    brace_count -= 1
                    if brace_count == 0:
                        return text[:i + 1]

        return None

    def _clean_json_string(self, json_str: str) -> str:
        """Remove trailing commas and comment lines that break json.loads"""
        text = json_str.strip()
        text = re.sub(r'^\s*//.*$', '', text, flags=re.MULTILINE)
        text = re.sub(r',\s*}', '}', text)
        text = re.sub(r',\s*]', ']', text)
        return text


def parse_llm_response(response: str, request_text: str = "") -> Optional[ParsedResponse]:
    """Convenience wrapper around ResponseParser.parse"""
    return ResponseParser().parse(response, request_text)
