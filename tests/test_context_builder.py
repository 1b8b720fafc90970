"""
Tests for conversation context reconstruction, request classification and prompt enrichment
"""

import json

import pytest

from siteforge.conversation.context_builder import (
    build_conversation_context,
    classify_request_type,
    create_context_aware_prompt,
    serialize_project_state,
)
from siteforge.core.artifact import ChatMessage, ProjectArtifact, RequestType
from siteforge.generation.prompts import INITIAL_SYSTEM_PROMPT

FIRST = ProjectArtifact(
    files={"index.html": "<h1>Bakery</h1>"},
    description="Bakery site",
    pages=["Home", "About"],
    features=["Responsive Design"],
)
SECOND = ProjectArtifact(
    files={"index.html": "<h1>Bakery</h1>", "menu.html": "<h1>Menu</h1>"},
    description="Bakery site with menu",
    pages=["Home", "About", "Menu"],
    features=["responsive design", "Online Ordering"],
)


@pytest.fixture
def history():
    return [
        ChatMessage("user", "Create a bakery site", timestamp="2024-05-01T10:00:00"),
        ChatMessage("assistant", "Created new project", artifact=FIRST, timestamp="2024-05-01T10:00:05"),
        ChatMessage("user", "Add a menu page", timestamp="2024-05-01T10:02:00"),
        ChatMessage("assistant", "Added 2 files", artifact=SECOND, timestamp="2024-05-01T10:02:07"),
    ]


@pytest.fixture
def context(history):
    return build_conversation_context(history, "Corner Bakery")


class TestBuildContext:
    def test_empty_history_is_first_message(self):
        context = build_conversation_context([])
        assert context.is_first_message
        assert context.total_messages == 0
        assert context.generation_count == 0
        assert context.current_project_state is None

    def test_history_without_artifacts_is_first_message(self):
        history = [ChatMessage("user", "hello"), ChatMessage("assistant", "Generation failed")]
        context = build_conversation_context(history)
        assert context.is_first_message
        assert context.total_messages == 2
        assert context.previous_requests == ["hello"]

    def test_context_from_history(self, context):
        assert not context.is_first_message
        assert context.total_messages == 4
        assert context.generation_count == 2
        assert context.current_project_state == SECOND
        assert context.previous_requests == ["Create a bakery site", "Add a menu page"]

        project = context.project_context
        assert project.name == "Corner Bakery"
        assert project.pages == ["Home", "About", "Menu"]
        assert project.features == ["Responsive Design", "Online Ordering"]
        assert project.is_multi_file
        assert project.last_modified == "2024-05-01T10:02:07"

        summary = context.conversation_summary
        assert summary.original_request == "Create a bakery site"
        assert summary.iteration_count == 2

    def test_default_project_name(self, history):
        assert build_conversation_context(history).project_context.name == "Untitled Project"

    def test_recent_requests_are_capped(self, history):
        for i in range(4):
            history.append(ChatMessage("user", f"request {i}"))
        summary = build_conversation_context(history).conversation_summary
        assert summary.recent_requests == ["request 1", "request 2", "request 3"]
        assert summary.original_request == "Create a bakery site"


class TestClassification:
    def test_first_message_is_new_project(self):
        context = build_conversation_context([])
        assert classify_request_type("Fix the header", context) == RequestType.NEW_PROJECT

    @pytest.mark.parametrize("message, expected", [
        ("Start over from scratch and fix the colors", RequestType.NEW_PROJECT),
        ("Let's build a brand new site for my gym", RequestType.NEW_PROJECT),
        ("Fix the header and add a footer", RequestType.MODIFICATION),
        ("Please UPDATE the hero text", RequestType.MODIFICATION),
        ("Include a testimonials section", RequestType.ADDITION),
        ("Also a gallery page", RequestType.ADDITION),
        ("Put our address in the footer", RequestType.MODIFICATION),
        ("Make the logo bigger", RequestType.MODIFICATION),
        ("Adding a pricing page would be great", RequestType.ADDITION),
        ("I added notes, now a FAQ section", RequestType.ADDITION),
        ("Including a blog section please", RequestType.ADDITION),
        ("The hero should be updated with our slogan", RequestType.MODIFICATION),
        ("Colors changed? Make them green and include a banner", RequestType.MODIFICATION),
        ("Removing the footer", RequestType.MODIFICATION),
    ])
    def test_follow_up_classification(self, context, message, expected):
        assert classify_request_type(message, context) == expected

    def test_word_boundaries(self, context):
        # "prefix" is not "fix", "address" is not "add"
        assert classify_request_type("The prefix looks odd, include a banner", context) == RequestType.ADDITION
        assert classify_request_type("Show our address twice", context) == RequestType.MODIFICATION
        assert classify_request_type("Add another section", context) == RequestType.ADDITION


class TestEnrichedPrompt:
    def test_first_message_prompt_is_raw(self):
        prompt = create_context_aware_prompt("Create a bakery site", build_conversation_context([]))
        assert not prompt.is_context_aware
        assert prompt.user_prompt == "Create a bakery site"
        assert prompt.system_prompt == INITIAL_SYSTEM_PROMPT

    def test_follow_up_prompt_embeds_project_state(self, context):
        prompt = create_context_aware_prompt("Change the colors to blue", context)
        assert prompt.is_context_aware
        assert prompt.user_prompt.startswith("CURRENT PROJECT STATE:")
        assert "USER REQUEST: Change the colors to blue" in prompt.user_prompt
        assert "iteration #4" in prompt.user_prompt
        assert "menu.html" in prompt.user_prompt
        assert "Corner Bakery" in prompt.system_prompt
        assert "Home, About, Menu" in prompt.system_prompt


class TestSerializeProjectState:
    def test_long_files_are_truncated(self):
        artifact = ProjectArtifact(files={"index.html": "x" * 50, "a.css": "short"})
        snapshot = json.loads(serialize_project_state(artifact, max_file_chars=10))
        assert snapshot["files"]["index.html"] == "x" * 10 + "\n... [40 characters truncated]"
        assert snapshot["files"]["a.css"] == "short"
        assert "provenance" not in snapshot

    def test_no_state(self):
        assert "No existing project state" in serialize_project_state(None)
