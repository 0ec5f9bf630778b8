"""Tests for the robots.txt summarizer."""

import pytest
from aeo.models import AccessLevel
from aeo.robots import summarize_robots


class TestSummarizeRobots:
    """Test cases for summarize_robots."""

    def test_empty_robots_allows_everything(self):
        """Test that a missing robots.txt allows every known bot."""
        result = summarize_robots("")
        assert list(result) == ["GPTBot", "Google-Extended", "PerplexityBot", "ClaudeBot", "*"]
        assert all(level == AccessLevel.ALLOW for level in result.values())

    def test_disallow_root_blocks(self):
        """Test that Disallow: / blocks the named bot only."""
        robots = "User-agent: GPTBot\nDisallow: /\n"
        result = summarize_robots(robots)
        assert result["GPTBot"] == AccessLevel.BLOCK
        assert result["ClaudeBot"] == AccessLevel.ALLOW

    def test_disallow_path_is_partial(self):
        """Test that a non-root Disallow path gives partial access."""
        robots = "User-agent: *\nDisallow: /private/\n"
        result = summarize_robots(robots)
        assert result["*"] == AccessLevel.PARTIAL

    def test_block_wins_over_partial(self):
        """Test that a later Disallow: / upgrades partial to block."""
        robots = "User-agent: ClaudeBot\nDisallow: /tmp/\nDisallow: /\n"
        assert summarize_robots(robots)["ClaudeBot"] == AccessLevel.BLOCK

    def test_empty_disallow_and_allow_do_not_restrict(self):
        """Test that empty Disallow and Allow lines leave access unchanged."""
        robots = "User-agent: PerplexityBot\nDisallow:\nAllow: /\n"
        assert summarize_robots(robots)["PerplexityBot"] == AccessLevel.ALLOW

    def test_grouped_user_agents(self):
        """Test that consecutive User-agent lines share rules."""
        robots = (
            "User-agent: GPTBot\n"
            "User-agent: Google-Extended\n"
            "Disallow: /\n"
            "\n"
            "User-agent: ClaudeBot\n"
            "Disallow: /drafts/\n"
        )
        result = summarize_robots(robots)
        assert result["GPTBot"] == AccessLevel.BLOCK
        assert result["Google-Extended"] == AccessLevel.BLOCK
        assert result["ClaudeBot"] == AccessLevel.PARTIAL
        assert result["*"] == AccessLevel.ALLOW

    def test_new_group_after_rules(self):
        """Test that a User-agent line after a rule starts a new group."""
        robots = "User-agent: GPTBot\nDisallow: /\nUser-agent: ClaudeBot\nAllow: /\n"
        result = summarize_robots(robots)
        assert result["GPTBot"] == AccessLevel.BLOCK
        assert result["ClaudeBot"] == AccessLevel.ALLOW

    @pytest.mark.parametrize("agent_line", ["user-agent: gptbot", "USER-AGENT:GPTBOT"])
    def test_case_insensitive(self, agent_line):
        """Test that directives and agent names match case-insensitively."""
        result = summarize_robots(f"{agent_line}\nDISALLOW: /\n")
        assert result["GPTBot"] == AccessLevel.BLOCK

    def test_comments_ignored(self):
        """Test that comments do not affect parsing."""
        robots = "# AI crawlers\nUser-agent: GPTBot # OpenAI\nDisallow: / # everything\n"
        assert summarize_robots(robots)["GPTBot"] == AccessLevel.BLOCK

    def test_unknown_agents_ignored(self):
        """Test that rules for unknown bots do not leak into the summary."""
        robots = "User-agent: Bingbot\nDisallow: /\n"
        result = summarize_robots(robots)
        assert all(level == AccessLevel.ALLOW for level in result.values())
