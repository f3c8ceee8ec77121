"""Core domain package for diffscope.

Core contains diff formatting, audience filtering, nonce sequencing and the
notification pipeline without any Telegram or storage-specific code, keeping
the business logic portable.
"""
