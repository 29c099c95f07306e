"""Splitting of shell/command fields into logical commands."""


def split_commands(text: str) -> list[str]:
    """Split a multi-line command field into logical commands.

    Each non-blank line is one command. A line ending in a backslash
    continues onto the next line: the backslash and the whitespace before it
    are dropped and a single space joins the two parts.

    Args:
        text: Raw shell/command field

    Returns:
        Logical commands in order

    Example:
        >>> split_commands("apt-get update\\napt-get install \\\\\\n  -y nginx")
        ['apt-get update', 'apt-get install -y nginx']
    """
    commands: list[str] = []
    current = ""

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue

        if stripped.endswith("\\"):
            current += stripped.rstrip("\\").rstrip() + " "
        else:
            commands.append(current + stripped)
            current = ""

    # Input ended on a continuation line
    if current:
        commands.append(current)

    return commands
