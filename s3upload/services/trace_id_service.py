import contextvars
import uuid


# Chunk traversals copy the submitting context into every worker, so part
# tasks log under the trace id of the upload that started them.
trace_id_context: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="no-trace-id")


def generate_trace_id() -> str:
    """Generate a 16-character hex trace ID for one upload run.

    Returns:
        A 16-character lowercase hex string (first 64 bits of UUID4).
        Example: "a1b2c3d4e5f67890"
    """
    return uuid.uuid4().hex[:16]
