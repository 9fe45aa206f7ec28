"""Run an analysis pipeline with a sample (or file-based) résumé and job description."""

import argparse
import asyncio
import logging
import uuid
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

from ats_buddy.models import AggregateResult, AppConfig, StageName, StageStatus
from ats_buddy.core import AnalysisOrchestrator


# Sample JD - replace with a real one for better results
SAMPLE_JD = """
Software Engineer - Backend

We're looking for a skilled backend engineer to join our team.

Requirements:
- 2+ years of experience with Python or Go
- Experience with REST APIs and microservices architecture
- Familiarity with databases (PostgreSQL, MongoDB, Redis)
- Experience with cloud platforms (AWS, GCP, or Azure)
- Knowledge of containerization (Docker, Kubernetes)

Nice to have:
- Experience with Machine Learning or NLP
- Open source contributions
"""

SAMPLE_RESUME = """
Jane Doe | jane@example.com | 555-0100

## EXPERIENCE
**Acme Corp** | 2021 - Present
**Software Engineer**
* Built REST APIs in Python and FastAPI serving 2M requests/day
* Migrated batch jobs to PostgreSQL and Redis, cutting runtime by 40%

## SKILLS
Python, FastAPI, PostgreSQL, Redis, Docker, Git
"""


def print_progress(result: AggregateResult) -> None:
    settled = [
        f"{name.value}={envelope.status.value}"
        for name, envelope in result.stages.items()
        if envelope.status != StageStatus.PENDING
    ]
    print(f"   … {', '.join(settled)}")


def print_result(result: AggregateResult) -> None:
    print("\n" + "=" * 60)
    print(f"RESULT (correlation {result.correlation_id})")
    print("=" * 60)

    for name, envelope in result.stages.items():
        if envelope.status == StageStatus.FAILED:
            print(f"\n❌ {name.value}: {envelope.error}")
            continue

        print(f"\n✅ {name.value}")
        output = envelope.output
        if name == StageName.KEYWORD_ANALYSIS:
            print(f"   Matching: {', '.join(output.matching_keywords)}")
            print(f"   Missing:  {', '.join(output.missing_keywords)}")
            for suggestion in output.suggestions:
                print(f"   • {suggestion}")
        elif name == StageName.SCORING:
            print(f"   Score: {output.overall}/100")
            print(f"   Role: {output.job_title or 'N/A'} @ {output.company or 'N/A'}")
            print(f"   Notes: {output.alignment_notes}")
        elif name == StageName.OPTIMIZATION:
            print(f"   Rationale: {output.rationale}")
        elif name == StageName.FORMATTING:
            print(output.markdown)


async def run_pipeline(mode: str, resume: str, job_text: str, mock: bool = False) -> None:
    """Run the selected pipeline and display results."""
    config = AppConfig()
    if mock:
        config.llm = config.llm.model_copy(update={"provider": "mock"})

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 60)
    print(f"ATS BUDDY - {mode}")
    print("=" * 60)
    print(f"\n📋 JD Preview: {job_text[:100].strip()}...")
    print(f"🔧 LLM Provider: {config.llm.provider} / {config.llm.model}")

    orchestrator = AnalysisOrchestrator(config)
    session_id = f"cli-{uuid.uuid4().hex[:8]}"

    if mode == "cover-letters":
        batch = await orchestrator.run_cover_letter_variants(resume, job_text, session_id)
        print(f"\nStatus: {batch.status.value}")
        for variant in batch.outputs:
            print(f"\n--- {variant.style} ---\n{variant.markdown}")
        for style, error in batch.errors.items():
            print(f"\n❌ {style}: {error}")
        return

    runners = {
        "full": orchestrator.run_full_analysis,
        "keywords": orchestrator.run_keyword_only,
        "score": orchestrator.run_score_only,
    }
    result = await runners[mode](
        resume, job_text, session_id, on_progress=print_progress
    )
    print_result(result)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--mode",
        choices=["full", "keywords", "score", "cover-letters"],
        default="full",
    )
    parser.add_argument("--resume", type=Path, help="Résumé text/markdown file")
    parser.add_argument("--job", type=Path, help="Job description text file")
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Serve canned replies instead of calling a model",
    )
    args = parser.parse_args()

    resume = args.resume.read_text(encoding="utf-8") if args.resume else SAMPLE_RESUME
    job_text = args.job.read_text(encoding="utf-8") if args.job else SAMPLE_JD

    asyncio.run(run_pipeline(args.mode, resume, job_text, mock=args.mock))


if __name__ == "__main__":
    main()
