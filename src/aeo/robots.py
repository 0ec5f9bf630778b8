"""
Robots Summarizer

Reduces robots.txt to a per-crawler access summary for the answer engines
the audit cares about:
- GPTBot, Google-Extended, PerplexityBot, ClaudeBot
- the wildcard group (*)
"""

import logging
import re

from aeo.constants import KNOWN_BOTS
from aeo.models import AccessLevel

logger = logging.getLogger(__name__)

_USER_AGENT_RE = re.compile(r"^user-agent\s*:\s*(.+)$", re.IGNORECASE)
_RULE_RE = re.compile(r"^(allow|disallow)\s*:\s*(.*)$", re.IGNORECASE)

_BOT_LOOKUP = {bot.lower(): bot for bot in KNOWN_BOTS}


def summarize_robots(robots_txt: str) -> dict[str, AccessLevel]:
    """Summarize robots.txt into allow/block/partial per known bot.

    Consecutive User-agent lines form one group. `Disallow: /` blocks the
    group's bots; any other non-empty Disallow path makes an allowed bot
    partial. Allow lines and unknown agents do not change the summary.

    Args:
        robots_txt: Raw robots.txt content (may be empty)

    Returns:
        Dictionary of bot name to AccessLevel, in KNOWN_BOTS order
    """
    result = {bot: AccessLevel.ALLOW for bot in KNOWN_BOTS}
    if not robots_txt:
        return result

    current_agents: list[str] = []
    in_rules = False

    for raw_line in robots_txt.splitlines():
        # Strip inline comments
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue

        ua_match = _USER_AGENT_RE.match(line)
        if ua_match:
            if in_rules:
                current_agents = []
                in_rules = False
            for agent in re.split(r"[\s,]+", ua_match.group(1).strip()):
                if agent:
                    current_agents.append(agent)
            continue

        rule_match = _RULE_RE.match(line)
        if not rule_match:
            continue

        in_rules = True
        rule = rule_match.group(1).lower()
        path = rule_match.group(2).strip()

        if rule != "disallow" or not path:
            continue

        for agent in current_agents:
            bot = _BOT_LOOKUP.get(agent.lower())
            if bot is None:
                continue
            if path == "/":
                result[bot] = AccessLevel.BLOCK
            elif result[bot] == AccessLevel.ALLOW:
                result[bot] = AccessLevel.PARTIAL

    blocked = [bot for bot, level in result.items() if level == AccessLevel.BLOCK]
    if blocked:
        logger.debug(f"robots.txt blocks: {', '.join(blocked)}")

    return result
