from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from campus_queue.core.logging import configure_logging
from campus_queue.workers import UnresponsiveEntrySweeper


def main() -> None:
    configure_logging()
    UnresponsiveEntrySweeper().run_forever()


if __name__ == "__main__":
    main()
