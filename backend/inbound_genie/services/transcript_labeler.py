from typing import Any, Dict, List, Optional
import re


AGENT = "agent"
USER = "user"

AGENT_PHRASES = [
    "how can i assist",
    "how can i help",
    "how are you doing",
    "thank you for",
    "i'm here to",
    "i'd be happy to",
    "let me help",
    "i understand",
    "i'm sorry to hear",
    "would you like",
    "is there anything",
    "can i help",
    "what can i do",
    "i can help",
    "i'll be happy",
    "please let me know",
    "feel free to",
    "i'm here",
    "good morning",
    "good afternoon",
    "good evening",
    "hello!",
    "hi there",
]

HUMAN_PHRASES = [
    "i am",
    "i'm",
    "yes",
    "no",
    "okay",
    "ok",
    "sure",
    "thanks",
    "thank you",
    "i want",
    "i need",
    "i have",
    "i think",
    "i feel",
]

PROFESSIONAL_WORDS = ["assist", "help", "please", "thank you", "understand"]

GREETING_RE = re.compile(r"^(hello|hi|hey|good (morning|afternoon|evening))")
QUESTION_OPENING_RE = re.compile(r"^(how|what|when|where|why|can|would|is|are|do|does)", re.IGNORECASE)
SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")
PARAGRAPH_RE = re.compile(r"\n\n+")

ROLE_ALIASES = {"assistant": AGENT, "agent": AGENT, "human": USER, "user": USER}


def identify_speaker(text: str) -> str:
    """Score a segment as agent or user speech. Ties go to the agent."""
    lower_text = text.lower().strip()

    # Greetings open the call, and the agent opens the call
    if GREETING_RE.match(lower_text):
        return AGENT

    agent_prefix = any(lower_text.startswith(p) for p in AGENT_PHRASES)
    human_prefix = any(lower_text.startswith(p) for p in HUMAN_PHRASES)
    questions = text.count("?")
    professional = any(w in lower_text for w in PROFESSIONAL_WORDS)

    agent_score = 0
    human_score = 0
    if agent_prefix:
        agent_score += 3
    if questions >= 2:
        agent_score += 2
    if len(text) > 150 and professional:
        agent_score += 2
    if professional:
        agent_score += 1

    if human_prefix:
        human_score += 2
    if len(text) < 50 and not agent_prefix:
        human_score += 1
    if questions == 0 and len(text) < 100:
        human_score += 1

    return USER if human_score > agent_score else AGENT


def _structured_segments(metadata: Optional[Dict[str, Any]]) -> Optional[List[Dict[str, Any]]]:
    if not isinstance(metadata, dict):
        return None
    raw = metadata.get("transcript_segments")
    if not isinstance(raw, list):
        raw = metadata.get("transcript")
        if not isinstance(raw, list):
            return None
    segments = []
    for seg in raw:
        if isinstance(seg, str):
            seg = {"role": USER, "text": seg}
        elif not isinstance(seg, dict):
            continue
        role =seg.get("role") or seg.get("speaker") or (AGENT if seg.get("is_agent") else USER)
        segments.append({
            "role": ROLE_ALIASES.get(str(role).lower(), role),
            "text": seg.get("text") or seg.get("transcript") or seg.get("content") or "",
            "timestamp": seg.get("timestamp"),
        })
    return segments


def split_transcript(transcript: str) -> List[str]:
    pieces = [p.strip() for p in PARAGRAPH_RE.split(transcript) if p.strip()]
    if len(pieces) <= 1:
        pieces = [p.strip() for p in transcript.split("\n") if p.strip()]
    if len(pieces) == 1 and len(pieces[0]) > 200:
        pieces = [p.strip() for p in SENTENCE_BOUNDARY_RE.split(pieces[0]) if p.strip()]
    return pieces


def parse_transcript(transcript: Optional[str], metadata: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """Turn a stored transcript into role-labelled segments.

    Structured segments in the call metadata are used as-is. Plain text is
    split into turns and each turn is scored, then corrected using the raw
    score of the turn before it.
    """
    if not transcript:
        return []
    structured = _structured_segments(metadata)
    if structured is not None:
        return structured

    pieces = split_transcript(transcript)
    segments = []
    for index, text in enumerate(pieces):
        role = identify_speaker(text)
        if index > 0:
            prev_role = identify_speaker(pieces[index - 1])
            if prev_role == AGENT and len(text) < 100 and not QUESTION_OPENING_RE.match(text):
                role = USER
            if prev_role == USER and len(text) > 100 and "?" in text:
                role = AGENT
        segments.append({"role": role, "text": text, "timestamp": None})
    return segments
