"""SkillAR Bharat: Streamlit web app"""

import asyncio
import logging
import sys
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────────────
ROOT = Path(__file__).parent
sys.path.insert(0, str(ROOT))

# ── Streamlit must be imported before any st.* calls ─────────────────────────
import streamlit as st

st.set_page_config(
    page_title="SkillAR Bharat",
    page_icon="🛠️",
    layout="centered",
    initial_sidebar_state="collapsed",
)

# ── Backend imports ───────────────────────────────────────────────────────────
from dotenv import load_dotenv
load_dotenv(ROOT / ".env")

from pydantic import ValidationError

from skillar.auth import IdentityClient, enroll, resolve_context
from skillar.authoring import submit_skill
from skillar.config import settings
from skillar.dashboard import build_dashboard
from skillar.database import init_db
from skillar.engine import Phase
from skillar.errors import AuthError, AuthoringError, InvalidTransition, WriteError
from skillar.schemas import Difficulty
from skillar.services import Services

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("skillar.app")

_CSS = """
<style>
:root {
    --indigo: #4F46E5;
    --green:  #16A34A;
    --red:    #DC2626;
    --cream:  #F9FAFB;
}
#MainMenu, footer { visibility: hidden; }
body, .stApp { background-color: var(--cream) !important; }
.sk-card {
    background: white;
    border-radius: 16px;
    box-shadow: 0 4px 20px rgba(0,0,0,0.06);
    padding: 1rem 1.2rem;
    margin: 0.5rem 0;
}
.sk-tag {
    display: inline-block;
    padding: 2px 10px;
    border-radius: 12px;
    font-size: 0.75rem;
    font-weight: 600;
    color: white;
    background: var(--indigo);
}
.sk-score { font-size: 3rem; font-weight: 700; color: var(--indigo); }
</style>
"""


def _inject_css():
    st.markdown(_CSS, unsafe_allow_html=True)


@st.cache_resource
def _services() -> Services:
    init_db()
    return Services.build()


# ── Session state ─────────────────────────────────────────────────────────────
_DEFAULTS = {
    "page":     "login",
    "identity": None,   # IdentityClient for this browser session
    "ctx":      None,   # AuthContext, resolved on every identity change
    "engine":   None,   # TrainingSessionEngine while the training page is open
}


def _init_state():
    for k, v in _DEFAULTS.items():
        if k not in st.session_state:
            st.session_state[k] = v

    if st.session_state["identity"] is None:
        services = _services()
        client = IdentityClient(services.auth)

        def _on_identity(identity):
            st.session_state["ctx"] = resolve_context(identity, services.catalog) if identity else None

        client.on_identity_change(_on_identity)
        st.session_state["identity"] = client


def _run(coro):
    return asyncio.run(coro)


# ── Routing helpers ───────────────────────────────────────────────────────────
def _nav(page: str):
    if st.session_state["page"] == "training" and page != "training":
        _leave_training()
    st.session_state["page"] = page
    st.rerun()


def _leave_training():
    engine = st.session_state.get("engine")
    if engine is not None:
        _run(engine.close())
        st.session_state["engine"] = None


# ── Display helpers ───────────────────────────────────────────────────────────
def _card(html: str):
    st.markdown(f'<div class="sk-card">{html}</div>', unsafe_allow_html=True)


def _skill_card(skill, key_prefix: str, enrolled: bool):
    ctx = st.session_state["ctx"]
    cols = st.columns([1, 3])
    with cols[0]:
        if skill.image_url:
            st.image(skill.image_url, use_container_width=True)
    with cols[1]:
        st.markdown(f'**{skill.title}** &nbsp;<span class="sk-tag">{skill.difficulty.value}</span>',
                    unsafe_allow_html=True)
        st.caption(f"{skill.category} · {len(skill.steps)} steps")
        st.write(skill.description)
        if enrolled:
            if st.button("▶ Start Training", key=f"{key_prefix}_{skill.id}"):
                st.session_state["training_skill"] = skill.id
                st.session_state["camera_permission"] = st.session_state.get("camera_allowed", True)
                _nav("training")
        elif st.button("Enroll Now", key=f"{key_prefix}_{skill.id}"):
            try:
                enroll(ctx, _services().catalog, skill.id)
                st.toast(f"Enrolled in {skill.title}")
            except WriteError as e:
                logger.error("enroll failed: %s", e)
                st.error("Could not enroll right now. Please try again.")
            st.rerun()


# ══════════════════════════════════════════════════════════════════════════════
# PAGE: Login / Signup
# ══════════════════════════════════════════════════════════════════════════════
def page_login():
    st.markdown("# 🛠️ SkillAR Bharat")
    st.caption("Sign in to continue your training")

    with st.form("login_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign In")

    if submitted:
        try:
            st.session_state["identity"].sign_in(email, password)
            _nav("dashboard")
        except AuthError as e:
            st.error(e.message)

    if st.button("Create an account"):
        _nav("signup")


def page_signup():
    st.markdown("# Create Account")
    st.caption("Join SkillAR Bharat and start learning")

    with st.form("signup_form"):
        full_name = st.text_input("Full Name")
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        confirm = st.text_input("Confirm Password", type="password")
        submitted = st.form_submit_button("Sign Up")

    if submitted:
        if password != confirm:
            st.error("Passwords do not match")
        else:
            try:
                st.session_state["identity"].sign_up(email, password, full_name)
                _nav("dashboard")
            except ValidationError as e:
                for err in e.errors():
                    st.error(err["msg"].removeprefix("Value error, "))
            except AuthError as e:
                st.error(e.message)

    if st.button("Already have an account? Sign in"):
        _nav("login")


# ══════════════════════════════════════════════════════════════════════════════
# PAGE: Dashboard
# ══════════════════════════════════════════════════════════════════════════════
def page_dashboard():
    services = _services()
    ctx = st.session_state["ctx"]
    view = build_dashboard(ctx, services.catalog, services.session_log)

    _card(
        f"<h3>Welcome back, {view.greeting_name}! 👋</h3>"
        f"<p>You have completed <b>{view.completed_count}</b> training sessions. "
        f"Keep up the great work!</p>"
    )
    if view.error:
        st.error("Could not load your dashboard. Please try again later.")
        return

    st.toggle("Allow camera access for training", value=True, key="camera_allowed")

    if view.enrolled:
        st.markdown("---\n#### My Learning")
        for skill in view.enrolled:
            _skill_card(skill, "start", enrolled=True)

    st.markdown("---\n#### Available Skills")
    if not view.available and not view.enrolled:
        st.info("No skills available yet.")
    for skill in view.available:
        _skill_card(skill, "enroll", enrolled=False)

    if view.recent_sessions:
        st.markdown("---\n#### Recent Activity")
        for item in view.recent_sessions:
            s = item.session
            title = item.skill_title or "Unknown skill"
            status = "Completed" if s.completed else "In Progress"
            _card(
                f"<b>{title}</b><br>"
                f"<small>{s.completed_at:%d %b %Y} · Score: {s.accuracy_score}% · {status}</small>"
            )


# ══════════════════════════════════════════════════════════════════════════════
# PAGE: Training session
# ══════════════════════════════════════════════════════════════════════════════
def page_training():
    services = _services()
    ctx = st.session_state["ctx"]
    engine = st.session_state["engine"]

    if engine is None:
        engine = services.training_engine(
            st.session_state.get("training_skill", ""),
            ctx.user_id,
            camera_permission=st.session_state.get("camera_permission", True),
        )
        _run(engine.start())
        st.session_state["engine"] = engine

    view = engine.view()

    if view.phase == Phase.ERROR:
        st.error(view.error or "Skill not found")
        if st.button("← Back to Dashboard"):
            _nav("dashboard")
        return

    if view.phase == Phase.COMPLETE:
        st.markdown("## 🏆 Training Completed!")
        st.write(f"You have successfully completed the **{view.skill_title}** module.")
        st.markdown(
            f'<div class="sk-card" style="text-align:center">'
            f'<small>FINAL SCORE</small><br><span class="sk-score">{view.accuracy_score}%</span>'
            f'<p>{view.result_feedback}</p></div>',
            unsafe_allow_html=True,
        )
        if not view.saved:
            st.warning("Your result will be saved when the connection is back.")
        c1, c2 = st.columns(2)
        with c1:
            if st.button("Return to Dashboard"):
                _nav("dashboard")
        with c2:
            if st.button("🔄 Retry Module"):
                _run(engine.retry())
                st.rerun()
        return

    top = st.columns([1, 3, 1])
    with top[0]:
        if st.button("← Exit"):
            _nav("dashboard")
    with top[1]:
        st.markdown(f"**{view.skill_title}**")
    with top[2]:
        st.markdown(f"Step {view.step_index + 1}/{view.total_steps}")

    photo = None
    if view.camera_error:
        st.error(view.camera_error)
    else:
        photo = st.camera_input("Point the camera at your work", key=f"cam_{view.step_index}")
        if photo is not None:
            engine.camera.push(photo.getvalue())

    st.markdown(f"### {view.step_title}")
    st.write(view.step_instruction)

    if view.feedback_message:
        if view.feedback_kind == "success":
            st.success(f"**Success!** {view.feedback_message}")
        else:
            st.error(f"**Try Again** {view.feedback_message}")

    if view.phase == Phase.STEP_RESULT:
        if st.button("Next Step →", type="primary"):
            _run(engine.advance())
            st.rerun()
    else:
        if st.button("📷 Verify Step", type="primary", disabled=not view.can_verify or photo is None):
            with st.spinner("Analyzing..."):
                try:
                    _run(engine.verify())
                except InvalidTransition as e:
                    st.error(str(e))
            st.rerun()


# ══════════════════════════════════════════════════════════════════════════════
# PAGE: Admin, skill authoring
# ══════════════════════════════════════════════════════════════════════════════
def page_admin():
    ctx = st.session_state["ctx"]
    if not ctx.is_admin:
        st.error("Admin access required")
        return

    st.markdown("# Create Skill Module")
    n_steps = st.number_input("Number of steps", min_value=1, max_value=30, value=1)

    with st.form("skill_form"):
        title = st.text_input("Skill Title", placeholder="e.g., Basic Electrical Wiring")
        description = st.text_area("Description", placeholder="Brief description of the skill...")
        c1, c2 = st.columns(2)
        with c1:
            difficulty = st.selectbox("Difficulty", [d.value for d in Difficulty])
        with c2:
            category = st.text_input("Category", value="General", placeholder="e.g., Electrical")
        cover = st.file_uploader("Cover Image", type=["png", "jpg", "jpeg", "webp"])

        steps = []
        for i in range(int(n_steps)):
            st.markdown(f"**Step {i + 1}**")
            steps.append({
                "title": st.text_input(f"Step {i + 1} Title", key=f"step_title_{i}",
                                       placeholder="e.g., Identify the neutral wire"),
                "instruction": st.text_input("Instruction", key=f"step_text_{i}",
                                             placeholder="e.g., Locate the blue wire in the junction box"),
            })
        submitted = st.form_submit_button("Create Skill Module")

    if submitted:
        try:
            submit_skill(
                ctx,
                _services().catalog,
                {"title": title, "description": description, "difficulty": difficulty,
                 "category": category, "steps": steps},
                cover.getvalue() if cover else None,
                filename=cover.name if cover else "cover",
            )
            st.toast(f"✅ {title} created")
            _nav("dashboard")
        except AuthoringError as e:
            st.error(str(e))
        except WriteError as e:
            logger.error("skill creation failed: %s", e)
            st.error("Failed to add skill")


# ══════════════════════════════════════════════════════════════════════════════
# Bottom navigation bar
# ══════════════════════════════════════════════════════════════════════════════
def _render_nav():
    ctx = st.session_state["ctx"]
    cols = st.columns(3 if ctx.is_admin else 2)
    with cols[0]:
        if st.button("🏠\nDashboard", key="nav_home"):
            _nav("dashboard")
    if ctx.is_admin:
        with cols[1]:
            if st.button("➕\nAdmin", key="nav_admin"):
                _nav("admin")
    with cols[-1]:
        if st.button("🚪\nLogout", key="nav_logout"):
            _leave_training()
            st.session_state["identity"].sign_out()
            _nav("login")


# ══════════════════════════════════════════════════════════════════════════════
# Entry point
# ══════════════════════════════════════════════════════════════════════════════
def main():
    _init_state()
    _inject_css()

    ctx = st.session_state["ctx"]
    page = st.session_state["page"]

    if ctx is None:
        if page == "signup":
            page_signup()
        else:
            page_login()
        return

    if page in ("login", "signup", "dashboard"):
        page_dashboard()
    elif page == "training":
        page_training()
    elif page == "admin":
        page_admin()

    if page != "training":
        _render_nav()


main()
