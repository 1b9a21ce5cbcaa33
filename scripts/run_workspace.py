import sys
from pathlib import Path

from focus_console.io_utils import read_text, save_compendium
from focus_console.settings import load_settings
from focus_console.tracing import configure_from_settings, get_tracer
from focus_console.workspace import JsonFileStore, Workspace


def main() -> None:
    """Chunk a text file into the persistent workspace and export the compendium."""
    chunking, tracing, paths = load_settings()
    configure_from_settings(tracing)

    workspace = Workspace(
        JsonFileStore(Path(paths.data_dir) / paths.store_file),
        chunking=chunking,
        tracer=get_tracer("focus-console.workspace"),
    )
    workspace.hydrate()
    workspace.set_compendium_text(read_text(sys.argv[1]))
    workspace.generate_chunks()
    destination = save_compendium(workspace.chunks, Path(paths.data_dir) / "knowledge-compendium.jsonl")
    print(f"{workspace.status}; wrote {destination}")


if __name__ == "__main__":
    main()
