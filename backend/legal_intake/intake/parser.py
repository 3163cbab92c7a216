"""
Stage Parser

Turns raw completion text into a schema-validated payload.

Tolerated: prose or markdown fences around one JSON object, single quotes,
Python literals, trailing commas, key-casing drift.
Rejected: truncated or ambiguous payloads, wrong field types. Nothing is ever
partially populated.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from legal_intake.errors import ParseFailure, SchemaMismatch

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_PY_LITERALS = {"True": "true", "False": "false", "None": "null"}


def normalize_key(key: str) -> str:
    """matterType / MatterType / matter-type / MATTER_TYPE -> matter_type"""
    key = _CAMEL_BOUNDARY.sub("_", key.strip())
    key = re.sub(r"[\s\-]+", "_", key)
    return key.lower()


class StageParser:
    """Extracts exactly one structured record from a completion."""

    def parse(self, raw_text: str, schema: Type[SchemaT]) -> SchemaT:
        """
        Parse raw completion text against a stage schema.

        Raises:
            ParseFailure: no usable payload (empty, truncated, ambiguous)
            SchemaMismatch: payload found but fields do not fit the schema
        """
        if raw_text is None or not raw_text.strip():
            raise ParseFailure("Empty completion", raw_text=raw_text or "")

        data = self.extract_object(raw_text)
        data = self._normalize_keys(data, raw_text)

        try:
            return schema.model_validate(data)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            ]
            logger.debug(f"{schema.__name__} rejected payload: {errors}")
            raise SchemaMismatch(schema.__name__, errors, raw_text=raw_text)

    def extract_object(self, raw_text: str) -> Dict[str, Any]:
        """Locate and decode the single JSON-shaped object in the text."""
        spans, truncated = self._find_objects(raw_text)
        if truncated:
            raise ParseFailure("Truncated payload: unbalanced braces", raw_text=raw_text)
        if not spans:
            raise ParseFailure("No JSON object found in completion", raw_text=raw_text)

        decoded: List[Dict[str, Any]] = []
        first_error: Optional[str] = None
        for start, end in spans:
            obj, error = self._decode(raw_text[start:end])
            if obj is not None:
                if obj not in decoded:
                    decoded.append(obj)
            elif first_error is None:
                first_error = error

        if not decoded:
            raise ParseFailure(f"Malformed payload: {first_error}", raw_text=raw_text)
        if len(decoded) > 1:
            raise ParseFailure(
                f"Ambiguous completion: {len(decoded)} different objects",
                raw_text=raw_text,
            )
        return decoded[0]

    # === 內部方法 ===

    def _find_objects(self, text: str) -> Tuple[List[Tuple[int, int]], bool]:
        """Return (start, end) spans of top-level {...} blocks and a truncation flag."""
        spans = []
        depth = 0
        start = 0
        quote: Optional[str] = None
        escaped = False

        for i, ch in enumerate(text):
            if depth == 0:
                if ch == "{":
                    depth = 1
                    start = i
                continue

            if quote:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == quote:
                    quote = None
                continue

            if ch in ("'", '"'):
                quote = ch
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    spans.append((start, i + 1))

        return spans, depth != 0

    def _decode(self, block: str) -> Tuple[Optional[Dict[str, Any]], str]:
        try:
            obj = json.loads(block)
        except json.JSONDecodeError:
            try:
                obj = json.loads(self._requote(block))
            except json.JSONDecodeError as e:
                return None, str(e)

        if not isinstance(obj, dict):
            return None, "payload is not an object"
        return obj, ""

    def _requote(self, block: str) -> str:
        """Rewrite single-quoted strings, Python literals and trailing commas as JSON."""
        out: List[str] = []
        i = 0
        n = len(block)

        while i < n:
            ch = block[i]

            if ch == '"':
                # 雙引號字串原樣保留
                j = i + 1
                while j < n and block[j] != '"':
                    j += 2 if block[j] == "\\" else 1
                out.append(block[i:j + 1])
                i = j + 1
                continue

            if ch == "'":
                out.append('"')
                j = i + 1
                while j < n and block[j] != "'":
                    if block[j] == "\\" and j + 1 < n:
                        nxt = block[j + 1]
                        out.append("'" if nxt == "'" else block[j:j + 2])
                        j += 2
                        continue
                    out.append('\\"' if block[j] == '"' else block[j])
                    j += 1
                out.append('"')
                i = j + 1
                continue

            if ch == ",":
                rest = block[i + 1:].lstrip()
                if rest[:1] in ("}", "]"):
                    i += 1
                    continue

            if ch.isalpha():
                j = i
                while j < n and (block[j].isalnum() or block[j] == "_"):
                    j += 1
                word = block[i:j]
                out.append(_PY_LITERALS.get(word, word))
                i = j
                continue

            out.append(ch)
            i += 1

        return "".join(out)

    def _normalize_keys(self, data: Dict[str, Any], raw_text: str) -> Dict[str, Any]:
        normalized: Dict[str, Any] = {}
        for key, value in data.items():
            norm = normalize_key(str(key))
            if norm in normalized and normalized[norm] != value:
                raise ParseFailure(
                    f"Ambiguous payload: conflicting values for '{norm}'",
                    raw_text=raw_text,
                )
            normalized[norm] = value
        return normalized
