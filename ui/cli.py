from __future__ import annotations

from workstation_installer.main import main as core_main


def main(argv: list[str] | None = None) -> int:
    # The console entry point; everything lives in the core CLI.
    return core_main(argv)


if __name__ == "__main__":
    raise SystemExit(main())
