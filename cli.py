#!/usr/bin/env python3
"""
SkillAR Bharat CLI
==================
Interactive terminal interface for SkillAR Bharat.
Lets you try every flow without running the web server: sign up, enroll,
train through a skill (frames read from image files), author skills from JSON.

Usage:
    python cli.py
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

# Ensure we can import skillar
sys.path.insert(0, str(Path(__file__).parent))

# Load .env
from dotenv import load_dotenv
load_dotenv()

from pydantic import ValidationError

from skillar.auth import IdentityClient, enroll, resolve_context
from skillar.authoring import submit_skill
from skillar.config import settings
from skillar.dashboard import build_dashboard
from skillar.database import init_db
from skillar.engine import Phase
from skillar.errors import AuthError, AuthoringError, SkillARError
from skillar.schemas import Role
from skillar.services import Services

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")


# ── UI helpers ──────────────────────────────────────────────────────────────

def header():
    print("\n" + "="*60)
    print("        SkillAR Bharat  — Vocational Skill Trainer")
    print("="*60)

def section(title: str):
    print(f"\n{'─'*55}")
    print(f"  {title}")
    print("─"*55)

def ask(prompt: str, default: str = "") -> str:
    if default:
        val = input(f"{prompt} [{default}]: ").strip()
        return val or default
    return input(f"{prompt}: ").strip()

def pick(items: list, label):
    """Numbered choice from a list; None if nothing valid was picked."""
    for i, item in enumerate(items, 1):
        print(f"  {i}. {label(item)}")
    try:
        return items[int(ask("Number")) - 1]
    except (ValueError, IndexError):
        print("  Invalid choice.")
        return None


# ── Auth ────────────────────────────────────────────────────────────────────

def flow_auth(services: Services, client: IdentityClient) -> bool:
    section("SIGN IN")
    print("  1  Sign in")
    print("  2  Create account")
    print("  3  Create admin account (local setup)")
    print("  0  Exit")
    choice = ask("Choice", "1")

    if choice == "0":
        return False
    try:
        email = ask("Email")
        password = ask("Password")
        if choice == "1":
            client.sign_in(email, password)
        elif choice == "2":
            client.sign_up(email, password, ask("Full name"))
        elif choice == "3":
            services.auth.sign_up(email, password, ask("Full name"), role=Role.ADMIN)
            client.sign_in(email, password)
    except ValidationError as e:
        for err in e.errors():
            print(f"  ✗ {err['msg'].removeprefix('Value error, ')}")
    except AuthError as e:
        print(f"  ✗ {e.message}")
    return True


# ── Flows ───────────────────────────────────────────────────────────────────

def flow_dashboard(services: Services, ctx):
    view = build_dashboard(ctx, services.catalog, services.session_log)
    section(f"WELCOME BACK, {view.greeting_name.upper()}")
    if view.error:
        print(f"  Could not load dashboard: {view.error}")
        return
    print(f"  Completed sessions: {view.completed_count}")

    print("\n  MY LEARNING:")
    for s in view.enrolled or []:
        print(f"  • {s.title} [{s.difficulty.value}] — {len(s.steps)} steps")
    if not view.enrolled:
        print("  (not enrolled in anything yet)")

    print("\n  AVAILABLE SKILLS:")
    for s in view.available:
        print(f"  • {s.title} [{s.difficulty.value}] — {s.category}")

    if view.recent_sessions:
        print("\n  RECENT ACTIVITY:")
        for item in view.recent_sessions:
            s = item.session
            print(f"  {s.completed_at:%Y-%m-%d} {item.skill_title or '?'}: {s.accuracy_score}%")


def flow_enroll(services: Services, ctx):
    section("ENROLL")
    available = [s for s in services.catalog.list_skills() if not ctx.is_enrolled(s.id)]
    if not available:
        print("  Nothing left to enroll in.")
        return
    skill = pick(available, lambda s: f"{s.title} [{s.difficulty.value}]")
    if skill:
        enroll(ctx, services.catalog, skill.id)
        print(f"  ✓ Enrolled in {skill.title}")


async def _training_loop(engine):
    async with engine:
        while True:
            view = engine.view()
            if view.phase == Phase.ERROR:
                print(f"\n  ✗ {view.error}")
                return
            if view.phase == Phase.COMPLETE:
                print(f"\n  🏆 Training completed! Final score: {view.accuracy_score}%")
                print(f"  {view.result_feedback}")
                if not view.saved:
                    print("  (saved to outbox — will sync on the next save)")
                if ask("Retry module? [y/n]", "n").lower() == "y":
                    await engine.retry()
                    continue
                return

            print(f"\n  Step {view.step_index + 1}/{view.total_steps}: {view.step_title}")
            print(f"  {view.step_instruction}")
            if view.feedback_message:
                print(f"  → {view.feedback_message}")

            if view.phase == Phase.STEP_RESULT:
                if ask("[n]ext step or [q]uit", "n").lower() == "q":
                    return
                await engine.advance()
                continue

            choice = ask("Image file for this step (Enter = blank frame, q = quit)")
            if choice.lower() == "q":
                print("  Session abandoned — nothing saved.")
                return
            if choice:
                try:
                    engine.camera.push(Path(choice).expanduser().read_bytes())
                except OSError as e:
                    print(f"  ✗ Could not read {choice}: {e}")
                    continue
            print("  Analyzing...", flush=True)
            await engine.verify()


def flow_training(services: Services, ctx):
    section("TRAINING SESSION")
    enrolled = services.catalog.skills_by_ids(ctx.profile.enrolled_skills if ctx.profile else [])
    if not enrolled:
        print("  Enroll in a skill first.")
        return
    skill = pick(enrolled, lambda s: f"{s.title} ({len(s.steps)} steps)")
    if skill:
        asyncio.run(_training_loop(services.training_engine(skill.id, ctx.user_id)))


def flow_history(services: Services, ctx):
    section("SESSION HISTORY")
    titles = {s.id: s.title for s in services.catalog.list_skills()}
    sessions = services.session_log.sessions_for_user(ctx.user_id)
    if not sessions:
        print("  No sessions yet.")
    for s in sessions:
        print(f"  {s.completed_at:%Y-%m-%d %H:%M}  {titles.get(s.skill_id, '?'):<30} {s.accuracy_score:>3}%  {s.feedback}")


def flow_author(services: Services, ctx):
    """
    Skill file format:
    {
        "title": "Basic Electrical Wiring", "description": "...", "difficulty": "Beginner",
        "category": "Electrical", "cover": "cover.jpg",
        "steps": [{"title": "Identify the neutral wire", "instruction": "Locate the blue wire"}]
    }
    """
    section("AUTHOR A SKILL")
    path = Path(ask("Skill JSON file")).expanduser()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        cover_path = path.parent / data.pop("cover", "")
        cover = cover_path.read_bytes() if cover_path.is_file() else None
    except (OSError, json.JSONDecodeError) as e:
        print(f"  ✗ Could not read {path}: {e}")
        return
    try:
        skill_id = submit_skill(ctx, services.catalog, data, cover, filename=cover_path.name)
        print(f"  ✓ Created skill {skill_id}")
    except AuthoringError as e:
        print(f"  ✗ {e}")


# ── Main loop ───────────────────────────────────────────────────────────────

def main():
    header()
    init_db()
    services = Services.build()
    client = IdentityClient(services.auth)
    state = {"ctx": None}
    client.on_identity_change(
        lambda identity: state.update(ctx=resolve_context(identity, services.catalog) if identity else None)
    )

    while state["ctx"] is None:
        if not flow_auth(services, client):
            return

    while True:
        ctx = state["ctx"]
        section("MAIN MENU")
        print("  1  Dashboard")
        print("  2  Enroll in a skill")
        print("  3  Start a training session")
        print("  4  Session history")
        if ctx.is_admin:
            print("  5  Author a skill from JSON")
        print("  6  Sync pending session saves")
        print("  0  Sign out & exit")

        choice = ask("\nChoice")
        try:
            if choice == "1":
                flow_dashboard(services, ctx)
            elif choice == "2":
                flow_enroll(services, ctx)
            elif choice == "3":
                flow_training(services, ctx)
            elif choice == "4":
                flow_history(services, ctx)
            elif choice == "5" and ctx.is_admin:
                flow_author(services, ctx)
            elif choice == "6":
                print(f"  Synced {services.outbox.flush(services.session_log)} session(s)")
            elif choice == "0":
                client.sign_out()
                print("\nGoodbye! Keep practising! \n")
                break
        except SkillARError as e:
            print(f"\n  Error: {e}")


if __name__ == "__main__":
    main()
