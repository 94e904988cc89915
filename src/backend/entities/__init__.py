"""
Entities package.

Each subdirectory represents one step of the flight assistant:
- intent_classifier/: Labels each turn with one of four intents
- query_generator/: Produces lookup parameters, SQL, or a clarification request
- clarification/: Resolves the date options offered during clarification
- query_validator/: Validates SQL queries before execution
- summarizer/: Turns result rows into a conversational answer
- suggestions/: Proposes follow-up questions
- assistant/: Routes a turn through the steps above
- workflow/: Builds the I/O clients shared by all steps
"""
