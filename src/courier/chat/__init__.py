"""Chat transport: command parsing, message formatting and the Telegram bot."""
