"""Update engine: the trigger channel and the single update executor."""
