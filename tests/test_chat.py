"""Tests for the chat history ring."""

import pytest

from willowfinder.chat import ChatLog, format_chat_message


def test_format_with_and_without_sender():
    assert format_chat_message("Bob", "hello") == "[Bob] hello"
    assert format_chat_message("", "Welcome to RuneScape.") == "[System] Welcome to RuneScape."
    assert format_chat_message(None, "x") == "[System] x"


def test_eleventh_entry_evicts_the_oldest():
    chat = ChatLog()
    for i in range(11):
        chat.append(None, f"message {i}")

    texts = [entry.formatted_text for entry in chat.entries()]

    assert len(texts) == 10
    assert texts[0] == "[System] message 1"
    assert texts[-1] == "[System] message 10"


def test_never_exceeds_capacity():
    chat = ChatLog(capacity=3)
    for i in range(50):
        chat.append("p", str(i))
        assert len(chat) <= 3


def test_invalid_capacity():
    with pytest.raises(ValueError):
        ChatLog(capacity=0)
