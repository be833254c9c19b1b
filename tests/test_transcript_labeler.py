from inbound_genie.services.transcript_labeler import (
    identify_speaker,
    parse_transcript,
    split_transcript,
)


def test_greeting_is_agent():
    assert identify_speaker("Hello, thanks for calling Acme Plumbing.") == "agent"
    assert identify_speaker("Good morning! This is Riley.") == "agent"


def test_short_affirmation_is_user():
    assert identify_speaker("Yes, I need to book an appointment.") == "user"


def test_agent_phrase_with_questions():
    assert identify_speaker("How can I help you today? Would you like to schedule a visit?") == "agent"


def test_tie_goes_to_agent():
    assert identify_speaker("Please hold while I check that for you?") == "agent"


def test_split_on_blank_lines():
    assert split_transcript("First turn.\n\nSecond turn.\n\n\nThird turn.") == [
        "First turn.", "Second turn.", "Third turn."
    ]


def test_split_falls_back_to_newlines():
    assert split_transcript("One\nTwo\n  \nThree") == ["One", "Two", "Three"]


def test_split_long_single_block_on_sentences():
    block = ("Thank you for calling Bright Dental, how may I direct your call today. "
             "I would like to move my cleaning to next week if that is possible! "
             "Certainly, let me look at the schedule for you right now? Great, thank you so much.")
    pieces = split_transcript(block)
    assert len(pieces) == 4
    assert pieces[0].startswith("Thank you for calling")
    assert pieces[-1] == "Great, thank you so much."


def test_short_text_is_not_split_on_sentences():
    assert split_transcript("Hi. Hello.") == ["Hi. Hello."]


def test_context_after_agent_turn():
    segments = parse_transcript(
        "Hello, thanks for calling. How can I help you today?\n\nSounds good, I'd like a quote."
    )
    assert [s["role"] for s in segments] == ["agent", "user"]
    assert segments[0]["timestamp"] is None


def test_long_question_after_user_turn_becomes_agent():
    long_question = ("I am not sure that I follow, my sink has been leaking since yesterday "
                     "and the water keeps running, can you come?")
    segments = parse_transcript(f"Yes, I need a plumber.\n\n{long_question}")
    assert segments[1]["role"] == "agent"


def test_structured_metadata_wins():
    metadata = {"transcript_segments": [
        {"role": "assistant", "text": "Hi there", "timestamp": 0.5},
        {"speaker": "human", "content": "Hey"},
    ]}
    segments = parse_transcript("ignored text", metadata)
    assert segments == [
        {"role": "agent", "text": "Hi there", "timestamp": 0.5},
        {"role": "user", "text": "Hey", "timestamp": None},
    ]


def test_empty_transcript():
    assert parse_transcript("") == []
    assert parse_transcript(None) == []


def test_plain_string_segments_are_tolerated():
    segments = parse_transcript("Hello there", {"transcript": ["Agent: hi", "User: hello", 42]})
    assert segments == [
        {"role": "user", "text": "Agent: hi", "timestamp": None},
        {"role": "user", "text": "User: hello", "timestamp": None},
    ]
