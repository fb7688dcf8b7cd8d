"""Set the terms agreement of every guest.

Usage: ``python scripts/reset_agreements.py [--agreed]``. Without ``--agreed``
every guest has to agree to the terms again on the next request.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app  # noqa: E402
from services import get_services  # noqa: E402


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--agreed",
        action="store_true",
        help="mark every guest as having agreed instead of resetting",
    )
    args = parser.parse_args(argv)

    app = create_app()
    with app.app_context():
        count = get_services(app).updates.reset_agreements(args.agreed)
    state = "agreed" if args.agreed else "not agreed"
    print(f"Terms agreement set to {state} for {count} guests.")


if __name__ == "__main__":
    main()
