"""
Kernel Layer

Foundational components with security requirements:
- Identity Core (password hashes, access tokens, renewal tokens, header credentials)

The HTTP, persistence and moderation layers call into the kernel with
plain values and translate its typed errors into responses.
"""
