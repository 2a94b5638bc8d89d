"""Run the full processing pipeline on a sample resume."""

import asyncio
import logging

from dotenv import load_dotenv

load_dotenv()

from hiring_reality.models import AppConfig
from hiring_reality.core import PipelineOrchestrator, create_context
from hiring_reality.services import build_backends


# Sample resume text - replace with real extracted PDF text
SAMPLE_RESUME = """
Priya Sharma
priya.sharma@example.com | +91 98765 43210 | Pune, Maharashtra
github.com/priyasharma

SUMMARY
Backend developer with two years of experience building REST APIs in Python
and Node.js. Comfortable with PostgreSQL, Docker and AWS deployments.

EXPERIENCE
Software Developer, Acme Fintech - 07/2022 to Present
- Built payment reconciliation APIs in Python serving 40 merchant partners
- Reduced nightly batch runtime by 35% by rewriting SQL queries
- Worked on Docker based deployment pipeline for staging

Intern, Nimbus Labs - 01/2022 to 06/2022
- Helped with migrating reports from Excel to PostgreSQL

EDUCATION
B.Tech Computer Engineering, University of Pune, 2022

SKILLS
Python, Node.js, PostgreSQL, Docker, AWS, Git, REST APIs
"""

SAMPLE_JD = """
Backend Engineer (2-4 years)

Requirements:
- Python or Go, REST APIs and microservices
- PostgreSQL, Redis
- Docker, Kubernetes, AWS
Nice to have: Kafka, GraphQL
"""

TARGET_ROLE = "Backend Developer"


async def run_pipeline():
    """Run the full pipeline and display results."""
    config = AppConfig()
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    backends = build_backends(config)
    orchestrator = PipelineOrchestrator(backends=backends, config=config)
    context = create_context(
        "demo-session",
        tier="free",
        target_role=TARGET_ROLE,
        jd_provided=True,
        config=config,
    )

    print("=" * 60)
    print("HIRING REALITY - Pipeline Demo")
    print("=" * 60)
    print(f"Providers: {', '.join(backends) or 'none configured'}")
    print(f"Target role: {TARGET_ROLE}")
    print("=" * 60)

    result = await orchestrator.run_pipeline(
        "full_processing",
        {"resume_text": SAMPLE_RESUME, "jd_text": SAMPLE_JD, "target_role": TARGET_ROLE},
        context,
    )

    print(f"\nSuccess: {result.success}  Tokens: {result.total_tokens}  Time: {result.duration_ms}ms")
    print(f"Steps completed: {', '.join(result.steps_completed) or 'none'}")
    for error in result.errors:
        print(f"  [{error.kind}] {error}")

    analysis = result.outputs.get("reality_analysis")
    if analysis:
        overall = analysis["overall_assessment"]
        print(f"\nShortlist chance: {overall['shortlist_chance']}")
        print(f"Feedback: {overall['honest_feedback']}")
        for panel in analysis["panels"].values():
            print(f"\n[{panel['status'].upper()}] {panel['title']}")
            for item in panel["items"]:
                print(f"   - ({item['status']}) {item['label']}: {item['explanation']}")

    print(f"\nBudget: {context.budget.snapshot()}")


if __name__ == "__main__":
    asyncio.run(run_pipeline())
