"""
Structured Output Repair
Best-effort recovery of JSON values from malformed or truncated model output.

Stages (first one that parses wins):
    1. direct     - json.loads on the raw text
    2. cleanup    - strip comments, trailing commas, quote bare keys,
                    single-quoted values, normalize line endings
    3. balance    - close unterminated strings and open braces/brackets,
                    fill missing values with null
    4. partial    - regex scan for simple key/value pairs (always succeeds)

parse_with_fix() never raises, whatever the input.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from genforge.core.logging_config import logger


STAGE_DIRECT = "direct"
STAGE_CLEANUP = "cleanup"
STAGE_BALANCE = "balance"
STAGE_PARTIAL = "partial"


# Stage 2 patterns
_LINE_COMMENT = re.compile(r'//.*$', re.MULTILINE)
_BLOCK_COMMENT = re.compile(r'/\*[\s\S]*?\*/')
_TRAILING_COMMA = re.compile(r',\s*([}\]])')
_BARE_KEY = re.compile(r'([{,]\s*)(\w+):')
_SINGLE_QUOTED_VALUE = re.compile(r":\s*'([^']*)'")

# Stage 3 patterns
_MISSING_VALUE_COMMA = re.compile(r':\s*,')
_MISSING_VALUE_BRACE = re.compile(r':\s*}')
_MISSING_VALUE_BRACKET = re.compile(r':\s*]')
_NEXT_DELIMITER = re.compile(r'[,}\]]')

# Stage 4 patterns
_KV_STRING = re.compile(r'"(\w+)"\s*:\s*"([^"]+)"')
_KV_NUMBER = re.compile(r'"(\w+)"\s*:\s*(-?\d+(?:\.\d+)?)')
_KV_BOOL = re.compile(r'"(\w+)"\s*:\s*(true|false)')
_KV_ARRAY = re.compile(r'"(\w+)"\s*:\s*\[([^\]]*)\]')

_CLOSERS = {'{': '}', '[': ']'}


@dataclass
class RepairResult:
    """Parsed value plus the stage that produced it"""
    value: Any
    stage: str

    @property
    def repaired(self) -> bool:
        return self.stage != STAGE_DIRECT

    @property
    def partial(self) -> bool:
        return self.stage == STAGE_PARTIAL


class StructuredOutputRepair:
    """Repair pipeline for model-produced JSON"""

    @staticmethod
    def try_parse(text: str) -> Optional[Any]:
        """Parse JSON, returning None on any failure"""
        try:
            return json.loads(text)
        except (ValueError, TypeError, RecursionError):
            return None

    @staticmethod
    def is_valid_json(text: str) -> bool:
        try:
            json.loads(text)
            return True
        except (ValueError, TypeError, RecursionError):
            return False

    @staticmethod
    def cleanup(text: str) -> str:
        """Normalize common non-JSON syntax produced by models"""
        fixed = text.strip()
        fixed = _LINE_COMMENT.sub('', fixed)
        fixed = _BLOCK_COMMENT.sub('', fixed)
        fixed = _TRAILING_COMMA.sub(r'\1', fixed)
        fixed = _BARE_KEY.sub(r'\1"\2":', fixed)
        fixed = _SINGLE_QUOTED_VALUE.sub(r': "\1"', fixed)
        fixed = fixed.replace("\\'", "'")
        fixed = fixed.replace('\r\n', '\n')
        return fixed

    @staticmethod
    def _open_delimiters(text: str) -> List[str]:
        """Stack of braces/brackets still open at the end of text (strings ignored)"""
        stack: List[str] = []
        in_string = False
        escaped = False
        for char in text:
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char in _CLOSERS:
                stack.append(char)
            elif char in ('}', ']') and stack and _CLOSERS[stack[-1]] == char:
                stack.pop()
        return stack

    @staticmethod
    def balance(text: str) -> str:
        """Close whatever the truncated text left open"""
        fixed = text

        open_stack = StructuredOutputRepair._open_delimiters(fixed)
        if open_stack:
            fixed += ''.join(_CLOSERS[char] for char in reversed(open_stack))

        # Odd number of quotes: close the last string at the next delimiter
        if fixed.count('"') % 2 != 0:
            last_quote = fixed.rfind('"')
            after = fixed[last_quote + 1:]
            match = _NEXT_DELIMITER.search(after)
            if match:
                cut = last_quote + 1 + match.start()
                fixed = fixed[:cut] + '"' + fixed[cut:]
            else:
                fixed += '"'

        fixed = _MISSING_VALUE_COMMA.sub(': null,', fixed)
        fixed = _MISSING_VALUE_BRACE.sub(': null}', fixed)
        fixed = _MISSING_VALUE_BRACKET.sub(': null]', fixed)
        fixed = _TRAILING_COMMA.sub(r'\1', fixed)
        return fixed

    @staticmethod
    def extract_partial(text: str) -> Dict[str, Any]:
        """Collect whatever simple key/value pairs can still be read"""
        result: Dict[str, Any] = {}

        for match in _KV_STRING.finditer(text):
            result[match.group(1)] = match.group(2)

        for match in _KV_NUMBER.finditer(text):
            raw = match.group(2)
            try:
                result[match.group(1)] = float(raw) if '.' in raw else int(raw)
            except ValueError:
                # Past the int digit limit; keep the digits as text
                result[match.group(1)] = raw

        for match in _KV_BOOL.finditer(text):
            result[match.group(1)] = match.group(2) == 'true'

        for match in _KV_ARRAY.finditer(text):
            parsed = StructuredOutputRepair.try_parse('[' + match.group(2) + ']')
            if isinstance(parsed, list):
                result[match.group(1)] = parsed
            else:
                result[match.group(1)] = [
                    item.strip().replace('"', '').replace("'", '')
                    for item in match.group(2).split(',')
                    if item.strip()
                ]

        return result

    @staticmethod
    def repair(text: str) -> RepairResult:
        if not isinstance(text, str):
            text = '' if text is None else str(text)

        value = StructuredOutputRepair.try_parse(text)
        if value is not None or text.strip() == 'null':
            return RepairResult(value=value, stage=STAGE_DIRECT)

        logger.debug(f"[JSONRepair] Invalid JSON ({len(text)} chars), attempting repair")

        cleaned = StructuredOutputRepair.cleanup(text)
        value = StructuredOutputRepair.try_parse(cleaned)
        if value is not None:
            logger.info("[JSONRepair] Recovered after cleanup")
            return RepairResult(value=value, stage=STAGE_CLEANUP)

        balanced = StructuredOutputRepair.balance(cleaned)
        value = StructuredOutputRepair.try_parse(balanced)
        if value is not None:
            logger.info("[JSONRepair] Recovered after closing incomplete structures")
            return RepairResult(value=value, stage=STAGE_BALANCE)

        partial = StructuredOutputRepair.extract_partial(balanced)
        logger.warning(f"[JSONRepair] Falling back to partial extraction ({len(partial)} keys recovered)")
        return RepairResult(value=partial, stage=STAGE_PARTIAL)


def parse_with_fix(text: str) -> Any:
    """Parse possibly-malformed JSON; never raises"""
    return StructuredOutputRepair.repair(text).value


def parse_with_fix_detailed(text: str) -> RepairResult:
    """Same as parse_with_fix but also reports which stage succeeded"""
    return StructuredOutputRepair.repair(text)


def _enclosing_segment(text: str, start: int) -> str:
    """
    Text from the opener at ``start`` to its matching closer. A truncated
    value (never closed) runs to the end of the text.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in '{[':
            depth += 1
        elif char in '}]':
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return text[start:]


def extract_json_from_response(response: str) -> RepairResult:
    """
    Locate a JSON object (or array) inside mixed prose/markdown and repair it.

    Order: the whole response if it already parses, then a ``` fence, then
    the value starting at the earliest '{' or '['. Falls back to repairing
    the whole response.
    """
    if not isinstance(response, str):
        response = '' if response is None else str(response)

    direct = StructuredOutputRepair.try_parse(response)
    if direct is not None or response.strip() == 'null':
        return RepairResult(value=direct, stage=STAGE_DIRECT)

    fence = re.search(r'```(?:json)?\s*([\s\S]*?)(?:```|$)', response)
    if fence and fence.group(1).strip():
        return StructuredOutputRepair.repair(fence.group(1))

    starts = [index for index in (response.find('{'), response.find('[')) if index != -1]
    if starts:
        return StructuredOutputRepair.repair(_enclosing_segment(response, min(starts)))

    return StructuredOutputRepair.repair(response)
