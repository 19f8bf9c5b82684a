"""Pure domain logic: item shaping and ranking."""
