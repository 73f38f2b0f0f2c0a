"""Sample chat completion bodies and error envelopes for testing."""

import json

SAMPLE_MESSAGES = [
    {"role": "system", "content": "You are a helpful assistant."},
    {"role": "user", "content": "What is the capital of France?"},
]

SAMPLE_USAGE = {
    "prompt_tokens": 20,
    "completion_tokens": 8,
    "total_tokens": 28,
}

SAMPLE_PERSON_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "age": {"type": "number"},
        "role": {"type": "string", "enum": ["admin", "user"]},
    },
    "required": ["name", "age"],
    "additionalProperties": False,
}


def make_completion(
    content="Paris is the capital of France.",
    model="anthropic/claude-3.5-sonnet",
    finish_reason="stop",
    usage=None,
    tool_calls=None,
):
    """Build a non-streamed chat completion body."""
    message = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    return {
        "id": "gen-test-123",
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": message,
                "finish_reason": finish_reason,
            }
        ],
        "usage": usage if usage is not None else dict(SAMPLE_USAGE),
    }


def make_error(message="Something went wrong", code=500, metadata=None):
    """Build an error envelope."""
    error = {"message": message, "code": code}
    if metadata:
        error["metadata"] = metadata
    return {"error": error}


def make_tool_call(call_id, name, arguments):
    """Build one requested tool call."""
    return {
        "id": call_id,
        "type": "function",
        "function": {"name": name, "arguments": json.dumps(arguments)},
    }


def make_chunk(content=None, finish_reason=None, usage=None, model="anthropic/claude-3.5-sonnet"):
    """Build one streamed chunk object."""
    delta = {}
    if content is not None:
        delta["content"] = content
    chunk = {
        "model": model,
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }
    if usage is not None:
        chunk["usage"] = usage
    return chunk


def sse_line(chunk):
    """Frame a chunk object as one event-stream data line."""
    return f"data: {json.dumps(chunk)}\n\n"


SAMPLE_STREAM = (
    ": OPENROUTER PROCESSING\n\n"
    + sse_line(make_chunk("Paris"))
    + sse_line(make_chunk(" is the"))
    + sse_line(make_chunk(" capital."))
    + sse_line(make_chunk(finish_reason="stop"))
    + sse_line(make_chunk(usage=SAMPLE_USAGE))
    + "data: [DONE]\n\n"
)
