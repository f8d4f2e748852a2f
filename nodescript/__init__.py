"""nodescript — compiles visual node graphs into scripting-language source."""

__version__ = "0.1.0"
