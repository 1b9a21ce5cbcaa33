from focus_console.chunking import chunk_text
from focus_console.classification import classify_task
from focus_console.codec import parse_chunks, serialize_chunks
from focus_console.markdown import normalize_to_markdown

SAMPLE_NOTES = """Remote work is encouraged from home or co-working spaces.

Working from another country is capped at 14 days without permit support.

Lost devices must be reported within one hour."""


if __name__ == "__main__":
    chunks = chunk_text(SAMPLE_NOTES, chunk_size=120, overlap=20)
    restored = parse_chunks(serialize_chunks(chunks, "jsonl"))
    print(
        {
            "classification": classify_task("urgent client review"),
            "markdown": normalize_to_markdown("Charter\n\nOwner: Ana"),
            "chunks": len(chunks),
            "roundtrip_ok": restored.chunks == chunks,
        }
    )
