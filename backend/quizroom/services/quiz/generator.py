"""Question set generation through an xAI chat-completions endpoint."""
import json
import logging
import re
from typing import Tuple

import requests

from quizroom.errors import ExternalServiceError, InvalidQuestionSet
from quizroom.models import Question, parse_question_set, sanitize_session_name

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a quiz generator. Create a quiz based on the user's request.

IMPORTANT RULES:
- Generate exactly 10 questions unless the user specifies a different number
- Each question must have exactly 4 answer options
- Exactly one option must be correct per question. Make sure not all questions have the same correct option index
- Questions should be clear and concise
- Avoid ambiguous or tricky questions
- Also generate a catchy quiz name (3-8 words) based on the topic
- Return ONLY valid JSON, no markdown, no code blocks
- The JSON must be an object with a "name" field and a "questions" array
- Each question object must have: "question" (string), "options" (array of 4 strings), "correctIndex" (0-3)

Example format:
{"name":"Highlights of World History","questions":[{"question":"What is 2+2?","options":["3","4","5","6"],"correctIndex":1}]}"""

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def parse_generated_quiz(content: str) -> Tuple[str, Tuple[Question, ...]]:
    """Turn the model's reply into a quiz name and a validated question set."""
    match = _FENCE.search(content)
    raw = match.group(1) if match else content
    try:
        parsed = json.loads(raw.strip())
    except ValueError:
        logger.error(f"[generate] unparseable response: {content[:200]!r}")
        raise ExternalServiceError('Invalid JSON response from AI')

    if isinstance(parsed, dict):
        name = sanitize_session_name(parsed.get('name'))
        questions = parsed.get('questions')
    else:
        name = 'Quiz'
        questions = parsed
    if not isinstance(questions, list) or not questions:
        raise ExternalServiceError('No questions in response')
    try:
        return name, parse_question_set(questions)
    except InvalidQuestionSet as exc:
        raise ExternalServiceError(f"Invalid question format: {exc.message}")


def generate_quiz(prompt: str, config) -> Tuple[str, Tuple[Question, ...]]:
    api_key = config.get('XAI_API_KEY')
    if not api_key:
        logger.error('[generate] API key not configured')
        raise ExternalServiceError('AI service not configured')

    logger.info(f"[generate] prompt={prompt!r}")
    try:
        response = requests.post(
            config.get('XAI_API_URL'),
            headers={
                'Content-Type': 'application/json',
                'Authorization': f"Bearer {api_key}",
            },
            json={
                'model': config.get('XAI_MODEL'),
                'messages': [
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': prompt},
                ],
                'temperature': 0.7,
            },
            timeout=config.get('XAI_TIMEOUT_SEC', 60),
        )
    except requests.RequestException as exc:
        logger.error(f"[generate] request failed: {exc}")
        raise ExternalServiceError('AI service unreachable')

    if not response.ok:
        logger.error(f"[generate] API error {response.status_code}: {response.text[:500]}")
        raise ExternalServiceError(f"AI service error: {response.status_code}")

    try:
        content = response.json()['choices'][0]['message']['content']
    except (ValueError, KeyError, IndexError, TypeError):
        content = None
    # content-part lists and other shapes carry no quiz text we can parse
    if not isinstance(content, str) or not content.strip():
        raise ExternalServiceError('No content in response')

    name, questions = parse_generated_quiz(content)
    logger.info(f"[generate] produced {len(questions)} questions name={name!r}")
    return name, questions
