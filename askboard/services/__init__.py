# Services package init
"""
AskBoard Backend: Services Layer
=================================

Service Inventory:
    - QuestionService: questions, answers, comments; ownership rules
    - documents:       pure helpers for embedded answer/comment entries
"""
