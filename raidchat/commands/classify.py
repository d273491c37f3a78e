"""
raidchat classify - Show how a message would be interpreted.

Offline: runs only the intent classifier and dialogue planner, never the API.
"""

from enum import Enum

from raidchat.chat.classifier import classify
from raidchat.chat.dialogue import begin_dialogue
from raidchat.lib.config import ChatConfig


def cmd_classify(args, config: ChatConfig) -> int:
    """Print the Intent for args.text and the questions a dialogue would ask."""
    text = " ".join(args.text)
    intent = classify(text)

    actionable = intent.confidence >= config.confidence_threshold
    print(f"Kind:       {intent.kind.value}")
    print(f"Confidence: {intent.confidence:.2f}"
          + ("" if actionable else f"  (below threshold {config.confidence_threshold})"))

    if intent.params:
        print("Params:")
        for key, value in intent.params.items():
            shown = value.value if isinstance(value, Enum) else value
            print(f"  {key}: {shown}")

    start = begin_dialogue(intent, args.project or "PROJECT")
    if start is not None:
        print("Questions:")
        if not start.state.steps:
            print("  (none - would execute immediately)")
        for step in start.state.steps:
            optional = "" if step.required else " (optional)"
            print(f"  - {step.field}{optional}: {step.prompt}")

    return 0 if actionable else 1
