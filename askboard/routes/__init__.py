# Routes package init
"""
AskBoard Backend: API Routes Package
=====================================

Route Inventory:
    - questions.py: /api/questions and every nested answer/comment route
    - health.py:    GET /health

Routes stay thin: they pull data out of the request, call QuestionService,
and return what it gives back. Status codes for failures come from the
exception handlers registered in main.py.
"""
