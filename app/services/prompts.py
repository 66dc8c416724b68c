FLASHCARD_GENERATION_PROMPT = """
Generate {count} flashcards from the following document as a JSON array.

Each card must be an object with:
- "question": string
- "answer": string
- "difficulty": "easy" | "medium" | "hard"

Output ONLY a JSON array. No other text.

If you cannot produce JSON, use this plain text format instead, one card per block:
Q: question text
A: answer text
D: easy, medium or hard
---

Document:
{content}
"""


QUIZ_GENERATION_PROMPT = """
You are an expert educator. Generate a quiz in STRICT JSON format with exactly {count} multiple-choice questions based on the following document.

CRITICAL RULES:
- Output ONLY valid JSON, no explanations, no markdown, no extra text
- Use this exact structure:
{{
  "title": "Short descriptive title about the document topic",
  "questions": [
    {{
      "question": "Clear question text?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": "Exact text of correct option",
      "explanation": "One sentence on why the answer is correct"
    }}
  ]
}}
- All fields are required
- Exactly 4 options per question
- Correct answer must match one of the options exactly

Document:
{content}
"""


SUMMARY_PROMPT = """Summarize the following document in 3-5 sentences:

{content}"""


CHAT_PROMPT = """Context:
{context}

Question: {question}
Answer concisely:"""


EXPLAIN_CONCEPT_PROMPT = """Explain "{concept}" based on this context:

{context}"""
