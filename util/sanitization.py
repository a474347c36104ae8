import re

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[mGKHJh]|\x1b\([B0]|\r")


class Sanitization:
    """
    Utility class to sanitize names and console text for different consumers
    by removing or replacing invalid characters.
    """

    @staticmethod
    def standard(value: str) -> str:
        """
        Sanitize a string to conform to the following rules:
        - Must be 3-24 characters long
        - Must start with a letter
        - Must end with a letter or digit
        - Only lowercase alphanumeric and hyphens allowed
        - No consecutive hyphens

        Args:
            value (str): Raw input string

        Returns:
            str: Sanitized string
        """
        if not isinstance(value, str):
            raise TypeError("Sanitization.standard: input must be a string")

        value = re.sub(r"[^a-z0-9\-]", "-", value.lower())
        value = re.sub(r"-{2,}", "-", value)
        value = value.strip("-")

        if not value or not value[0].isalpha():
            value = "a" + value

        if not value[-1].isalnum():
            value = value + "0"

        if len(value) < 3:
            value += "xyz"[:3 - len(value)]
        elif len(value) > 24:
            value = value[:24]

        return value

    @staticmethod
    def purge(value: str, max_length: int = 24) -> str:
        """
        Removes everything except alphanumeric characters and lowercases the rest.
        Storage account names only accept this alphabet.

        Args:
            value (str): Raw name.
            max_length (int): Truncation length.

        Returns:
            str: The sanitized, lowercase name.
        """
        return re.sub(r"[^a-zA-Z0-9]", "", value).lower()[:max_length]

    @staticmethod
    def strip_ansi(text: str) -> str:
        """
        Removes terminal color/formatting escape sequences and carriage returns.
        """
        if not text:
            return ""
        return ANSI_ESCAPE.sub("", text)

    @staticmethod
    def to_json_string(value: str) -> str:
        """
        Converts a shell-style JSON-like string (single quotes) into valid JSON text.

        "{'a': 'b'}" -> '{"a": "b"}'. Escape sequences are stripped as well; quoting
        for embedding into the output document is left to the JSON encoder.
        """
        if not value:
            return ""
        return Sanitization.strip_ansi(value).replace("'", '"')


standard = Sanitization.standard
purge = Sanitization.purge
strip_ansi = Sanitization.strip_ansi
to_json_string = Sanitization.to_json_string
