"""
Kernel layer: persistent models and the transcript store.

Everything above this layer reaches the database through
:class:`~voiceowl.kernel.store.TranscriptStore`.
"""
