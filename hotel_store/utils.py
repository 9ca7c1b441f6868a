def is_valid_username(username: str) -> bool:
    """
    3-20 characters, starting with a letter, then letters, digits or underscores.
    """
    if not username or not 3 <= len(username) <= 20:
        return False
    if not (username[0].isascii() and username[0].isalpha()):
        return False
    return all(ch.isascii() and (ch.isalnum() or ch == "_") for ch in username)


def is_valid_phone(phone: str) -> bool:
    if not phone or not 10 <= len(phone) <= 15:
        return False
    return all(ch in "0123456789" for ch in phone)


def contains_line_break(value: str) -> bool:
    return "\n" in value or "\r" in value
