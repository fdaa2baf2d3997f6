"""Prompt templates for the intelligence radar digest."""

from __future__ import annotations

RECONCILE_PROMPT = """You are an expert editor. You received two drafts for the same prompt.
Merge the two answers below into a single, concise and fluent answer.
Keep the most relevant information and a professional tone.
---
Answer 1 ({first_id}):
{first_text}
---
Answer 2 ({second_id}):
{second_text}"""

SELECTION_PROMPT = """Your task is data extraction. From the list of headlines below, select the {count} headlines that are most strategically relevant for a reader interested in: {interests}.

STRICT RULES:
- Answer ONLY with the {count} headlines, copied exactly as written in the list.
- Each headline MUST be on its own line.
- Do NOT add numbers, bullets, summaries or explanations.
- Your whole answer must be the {count} headlines and nothing else.

HEADLINES TO ANALYZE:
{headlines}"""

SELECTION_REPAIR_PROMPT = """Fix the list below into EXACTLY {count} lines with the original headlines, one per line, with no numbering, no bullets and no extra explanation:
{draft}"""

DIGEST_PROMPT = """You are an analyst writing an intelligence briefing. For EACH item:
1) Translate the title into {language}.
2) In {language}, summarize in 140-200 characters why it matters (one strong, clear sentence).
3) Use EXACTLY the URL provided, at the end, as ([Read more](URL)).

Items (use these titles and URLs EXACTLY):
{items}

EXACT output format (repeat for every item, no extra numbering):
*<Title in {language}>*
<Summary 140-200 characters.> ([Read more](URL))"""

DIGEST_REPAIR_PROMPT = """Format EXACTLY {count} items as follows and add nothing else:
*<Title in {language}>*
<Summary 140-200 characters.> ([Read more](URL))

Keep the same titles and URLs I gave you.
{items}

Previous draft:
{draft}"""

TONE_PROMPT = """Classify the overall tone of these {count} headlines in one short phrase (max 120 characters), written in {language}. Use terms such as: geopolitical alert / tech optimism / macro uncertainty / regulatory progress. Return ONLY the phrase.
Headlines:
{headlines}"""

STATUS_PROMPT = "test"


def bullet_list(titles: list[str]) -> str:
    return "\n".join(f"- {t}" for t in titles)


def items_block(pairs: list[tuple[str, str]]) -> str:
    # 제목과 URL을 번호 블록으로 고정해 모델이 URL을 바꾸지 못하게 한다
    return "\n\n".join(f"#{i}\nTitle: {title}\nURL: {url}" for i, (title, url) in enumerate(pairs, start=1))
