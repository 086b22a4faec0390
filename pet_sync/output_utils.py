"""Output helpers shared by script entrypoints."""

import os


def set_output(key: str, value: str) -> None:
    """
    Publish a step output for GitHub Actions, or print it when run locally.

    In GitHub Actions, appends to the GITHUB_OUTPUT file.
    """
    output_file = os.environ.get("GITHUB_OUTPUT")

    if output_file:
        with open(output_file, "a", encoding="utf-8") as f:
            f.write(f"{key}={value}\n")

    print(f"  {key}={value}")
