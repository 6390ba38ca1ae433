"""TwiML response documents returned to the telephony gateway."""
from enum import Enum


DEFAULT_GATEWAY_VOICE = "Polly.Joanna"
LISTEN_TIMEOUT_SECONDS = 5

GREETING_PROMPT = "How can I help you today?"
GREETING_REPROMPT = "I didn't hear anything. Let me try again."
LISTENING_PROMPT = "I'm listening. Please go ahead."
LISTENING_REPROMPT = "I didn't catch that. Could you please repeat?"
CONTINUE_PROMPT = "I'm here to help. What would you like to know?"
REPLY_FOLLOW_UP = "Is there anything else I can help you with?"
REPLY_CLOSING = "Thank you for calling. Have a great day!"
GOODBYE_MESSAGE = "Thank you for calling. Goodbye!"
ERROR_MESSAGE = "I'm sorry, there was a technical issue. Please try calling again later."

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'


class DocumentKind(str, Enum):
    """Kinds of response documents."""

    GREETING = "greeting"
    LISTENING = "listening"
    CONTINUE = "continue"
    REPLY = "reply"
    GOODBYE = "goodbye"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


def escape_xml(text: str) -> str:
    """Escape the five reserved XML characters, ampersand first."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def gateway_voice(voice_profile: str | None) -> str:
    """Map a voice profile to the gateway's built-in voice name."""
    if not voice_profile:
        return DEFAULT_GATEWAY_VOICE
    if voice_profile.startswith("Polly."):
        return voice_profile
    return f"Polly.{voice_profile}"


def _say(text: str, voice: str) -> str:
    return f'<Say voice="{escape_xml(voice)}">{escape_xml(text)}</Say>'


def _gather(prompt: str, voice: str, action_url: str) -> str:
    return (
        f'<Gather input="speech" timeout="{LISTEN_TIMEOUT_SECONDS}" speechTimeout="auto" '
        f'action="{escape_xml(action_url)}" method="POST">\n'
        f"        {_say(prompt, voice)}\n"
        f"    </Gather>"
    )


def _document(*verbs: str) -> str:
    body = "\n".join(f"    {verb}" for verb in verbs)
    return f"{XML_HEADER}\n<Response>\n{body}\n</Response>"


def greeting_document(
    initial_message: str, voice_profile: str | None, action_url: str, redirect_url: str
) -> str:
    """Speak the opening message, listen, and re-prompt if nothing is heard."""
    voice = gateway_voice(voice_profile)
    return _document(
        _say(initial_message, voice),
        _gather(GREETING_PROMPT, voice, action_url),
        _say(GREETING_REPROMPT, voice),
        f'<Redirect method="POST">{escape_xml(redirect_url)}</Redirect>',
    )


def listening_document(
    voice_profile: str | None,
    action_url: str,
    redirect_url: str,
    prompt: str = LISTENING_PROMPT,
) -> str:
    """Speak a short invitation and listen."""
    voice = gateway_voice(voice_profile)
    return _document(
        _gather(prompt, voice, action_url),
        _say(LISTENING_REPROMPT, voice),
        f'<Redirect method="POST">{escape_xml(redirect_url)}</Redirect>',
    )


def continue_document(voice_profile: str | None, action_url: str, redirect_url: str) -> str:
    """Same shape as the listening document, used for unrecognized statuses."""
    return listening_document(voice_profile, action_url, redirect_url, prompt=CONTINUE_PROMPT)


def reply_document(text: str, voice_profile: str | None, action_url: str) -> str:
    """Speak a reply, listen again, then close and hang up if nothing follows."""
    voice = gateway_voice(voice_profile)
    return _document(
        _say(text, voice),
        _gather(REPLY_FOLLOW_UP, voice, action_url),
        _say(REPLY_CLOSING, voice),
        "<Hangup/>",
    )


def goodbye_document() -> str:
    """Fixed closing line and hang up."""
    return _document(_say(GOODBYE_MESSAGE, DEFAULT_GATEWAY_VOICE), "<Hangup/>")


def error_document() -> str:
    """Fixed apology and hang up."""
    return _document(_say(ERROR_MESSAGE, DEFAULT_GATEWAY_VOICE), "<Hangup/>")
