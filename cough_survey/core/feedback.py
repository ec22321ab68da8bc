"""
Light-hearted feedback shown to a participant after each answer.

There is no correct answer to a classification, so the message never
comments on the choice itself.
"""
import random
from typing import Optional

FEEDBACK_MESSAGES = (
    "Tricky, isn't it? Even experts argue about this one!",
    "Hmm, that was a challenging sound to identify!",
    "Are you sure? Just kidding, there's no right answer!",
    "Did you know coughs can be as unique as fingerprints?",
    "That's a tough one! It's like the 'Yanny or Laurel' of respiratory sounds.",
    "Interesting choice! The world of respiratory sounds is complex.",
    "Your ears are being put to the test today!",
    "That's the kind of sound that divides opinion at cough conferences!",
    "Trust your ears - they're surprisingly good at this!",
    "This one keeps our research team debating too!",
)


def pick_feedback_message(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(FEEDBACK_MESSAGES)
