"""
VoiceOwl - audio transcription service with a review/approval workflow.
"""

__version__ = "1.0.0"
