"""Service layer: persistence gateway, prompts and the LLM gateway client."""
