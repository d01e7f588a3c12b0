"""
accentmaster package - Django accent-practice application with Gemini integration.

This is the project package for AccentMaster, a Django application that
collects short spoken recordings against generated prompts and asks Google
Gemini for acoustic feedback on pronunciation and accent.

Key features:
- Prompt generation for reading, responding, tongue twisters and slang
- Recording analysis with scores, strengths and improvement areas
- Flashcards with a streak-based spaced-repetition schedule
- Progress tracking (average score, daily chart, practice streak)
"""
