"""
Tests for participant feedback messages.
"""
import random

from cough_survey.core.feedback import FEEDBACK_MESSAGES, pick_feedback_message


class TestFeedback:
    def test_message_from_list(self):
        assert pick_feedback_message() in FEEDBACK_MESSAGES

    def test_seeded_choice(self):
        expected = random.Random(3).choice(FEEDBACK_MESSAGES)
        assert pick_feedback_message(random.Random(3)) == expected

    def test_ten_messages(self):
        assert len(FEEDBACK_MESSAGES) == 10
        assert len(set(FEEDBACK_MESSAGES)) == 10
