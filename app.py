"""
Pragmatica - Learn pragmatics through humour

Streamlit application walking learners through a sequence of modules
(theory, example jokes, practice, post-test, reflection), with spaced
review reminders and device-to-device progress backup.

Usage:
    streamlit run app.py
"""

import logging

import streamlit as st

from pragmatica.backup import (
    encode_backup,
    export_progress_file,
    import_progress_file,
    restore_backup,
)
from pragmatica.classroom import (
    CurriculumLoader,
    ModuleAvailability,
    Navigator,
    ProgressPersistence,
    SqliteStorage,
    StepStateMachine,
    complete_review,
    dismiss_review,
    most_urgent_review,
    record_placement,
)
from pragmatica.classroom.steps import STEP_LABELS
from pragmatica.config import configure_logging, load_settings
from pragmatica.errors import CurriculumError
from pragmatica.utils.timeutil import now_ms

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

st.set_page_config(
    page_title="Pragmatica",
    page_icon="🎭",
    layout="wide",
    initial_sidebar_state="expanded",
)

PLACEMENT_QUESTION_COUNT = 15


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "settings" not in st.session_state:
        settings = load_settings()
        configure_logging(settings)
        st.session_state.settings = settings

    settings = st.session_state.settings

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = "modules"  # modules, backup

    if "curriculum" not in st.session_state:
        try:
            st.session_state.curriculum = CurriculumLoader(settings.curriculum_path).load()
        except (FileNotFoundError, CurriculumError) as exc:
            logger.error(f"Curriculum unavailable: {exc}")
            st.session_state.curriculum = None
            st.session_state.curriculum_error = str(exc)

    if st.session_state.curriculum is None:
        return

    if "persistence" not in st.session_state:
        st.session_state.persistence = ProgressPersistence(
            SqliteStorage(settings.db_path),
            st.session_state.curriculum,
            settings.limits,
        )

    if "store" not in st.session_state:
        outcome = st.session_state.persistence.load()
        st.session_state.store = outcome.store
        st.session_state.warnings = list(outcome.warnings)

    if "navigator" not in st.session_state:
        st.session_state.navigator = Navigator(st.session_state.store)

    if "current_module_id" not in st.session_state:
        st.session_state.current_module_id = st.session_state.navigator.last_incomplete_module()

    if "machines" not in st.session_state:
        st.session_state.machines = {}


def save_progress():
    """Persist the store; a failed save is shown, never raised."""
    outcome = st.session_state.persistence.save(st.session_state.store)
    if not outcome.ok and outcome.warning not in st.session_state.warnings:
        st.session_state.warnings.append(outcome.warning)


def replace_store_views():
    """Rebuild objects that cache module order after a restore or import."""
    st.session_state.navigator = Navigator(st.session_state.store)
    st.session_state.machines = {}
    st.session_state.current_module_id = st.session_state.navigator.last_incomplete_module()


def get_machine(module_id: str) -> StepStateMachine:
    machines = st.session_state.machines
    if module_id not in machines:
        machine = StepStateMachine(st.session_state.store, module_id)
        machine.enter()
        machines[module_id] = machine
        save_progress()
    return machines[module_id]


# -----------------------------------------------------------------------------
# Sidebar: Module Tree
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with module tree and progress."""
    st.sidebar.title("🎭 Pragmatica")

    if st.session_state.curriculum is None:
        st.sidebar.error("Curriculum not found. Check PRAGMATICA_CURRICULUM.")
        return

    nav = st.session_state.navigator

    # Progress summary
    stats = nav.get_progress_summary()
    st.sidebar.markdown(f"""
    **Progress:** {stats['completed']}/{stats['total_modules']} modules ({stats['completion_percent']}%)
    """)
    st.sidebar.progress(stats['completion_percent'] / 100)

    st.sidebar.divider()

    # View mode selector
    st.sidebar.subheader("View Mode")
    view_mode = st.sidebar.radio(
        "Select view",
        ["Modules", "Backup"],
        index=["modules", "backup"].index(st.session_state.view_mode),
        horizontal=True,
        label_visibility="collapsed",
    )
    st.session_state.view_mode = view_mode.lower()

    if st.session_state.view_mode == "modules":
        render_module_tree()
        render_placement_form()


def render_module_tree():
    """Render the module list with availability indicators."""
    nav = st.session_state.navigator

    st.sidebar.divider()
    st.sidebar.subheader("Modules")

    for nav_module in nav.get_navigation_tree():
        module = nav_module.definition
        indicator = nav.get_status_indicator(module.id)
        disabled = nav_module.availability == ModuleAvailability.LOCKED

        col1, col2 = st.sidebar.columns([1, 9])
        with col1:
            st.markdown(indicator)
        with col2:
            label = module.title
            if nav_module.mastery_achieved:
                label += f" ({nav_module.mastery_score}%)"
            if st.button(label, key=f"module_{module.id}", disabled=disabled, use_container_width=True):
                select_module(module.id)


def render_placement_form():
    """Let a learner who took the placement test skip ahead."""
    store = st.session_state.store
    if store.placement.completed:
        return

    st.sidebar.divider()
    with st.sidebar.expander("Placement test result"):
        correct = st.number_input(
            "Correct answers",
            min_value=0,
            max_value=PLACEMENT_QUESTION_COUNT,
            step=1,
        )
        if st.button("Apply placement"):
            recommended = record_placement(store, int(correct), now_ms())
            save_progress()
            select_module(recommended)


def select_module(module_id: str):
    """Select a module and update state."""
    st.session_state.current_module_id = module_id
    st.rerun()


# -----------------------------------------------------------------------------
# Main Content: Module View
# -----------------------------------------------------------------------------

def render_warnings():
    for warning in st.session_state.warnings:
        st.warning(warning)


def render_review_reminder():
    """Show the most overdue review, if any."""
    store = st.session_state.store
    due = most_urgent_review(store, now_ms())
    if not due:
        return

    title = store.definition(due.module_id).title
    with st.container(border=True):
        st.markdown(f"**{due.band}: {title}**")
        st.caption(due.reason)
        col1, col2 = st.columns(2)
        with col1:
            if st.button("Review now", key="review_now", use_container_width=True):
                complete_review(store, due.module_id, now_ms())
                save_progress()
                select_module(due.module_id)
        with col2:
            if st.button("Dismiss", key="review_dismiss", use_container_width=True):
                dismiss_review(store, due.module_id, now_ms())
                save_progress()
                st.rerun()


def render_module_view():
    """Render the current module step."""
    if st.session_state.curriculum is None:
        st.error("Curriculum could not be loaded.")
        st.code(st.session_state.get("curriculum_error", ""))
        return

    nav = st.session_state.navigator
    render_review_reminder()

    module_id = st.session_state.current_module_id
    if not module_id:
        if nav.all_modules_complete():
            st.success("🎓 You have completed every module!")
        else:
            st.info("Select a module from the sidebar to begin.")
        return

    recommendation = nav.recommendation()
    if recommendation and recommendation.module_id != module_id:
        st.info(recommendation.message)

    machine = get_machine(module_id)
    st.title(machine.definition.title)
    if machine.definition.summary:
        st.caption(machine.definition.summary)

    render_step_bar(machine)

    step = machine.current_step
    if step == "theory":
        render_theory_step(machine)
    elif step == "jokes":
        render_jokes_step(machine)
    elif step == "activities":
        render_activities_step(machine)
    elif step == "postTest":
        render_post_test_step(machine)
    elif step == "reflection":
        render_reflection_step(machine)

    render_step_navigation(machine)


def render_step_bar(machine: StepStateMachine):
    pos, total = machine.position()
    labels = [
        f"**{STEP_LABELS[step]}**" if index == machine.index else STEP_LABELS[step]
        for index, step in enumerate(machine.steps)
    ]
    st.markdown(" → ".join(labels))
    st.progress(pos / total)
    st.divider()


def render_theory_step(machine: StepStateMachine):
    st.subheader("Theory")
    st.markdown(machine.definition.summary or "")
    if st.button("Mark section as read", key=f"read_{machine.module_id}"):
        machine.mark_section_read("overview")
        save_progress()


def render_jokes_step(machine: StepStateMachine):
    st.subheader("Examples")
    required = machine.definition.required_jokes
    analyzed = machine.progress.jokes.analyzed
    st.markdown(f"Analysed {len(analyzed)} of {required} example jokes.")
    for number in range(1, required + 1):
        example_id = f"{machine.module_id}-joke-{number}"
        done = example_id in analyzed
        if st.button(
            f"{'✓ ' if done else ''}Example {number}",
            key=f"example_{example_id}",
            disabled=done,
        ):
            machine.analyze_example(example_id)
            save_progress()
            st.rerun()


def render_activities_step(machine: StepStateMachine):
    st.subheader("Practice")
    required = machine.definition.required_activities
    completed = machine.progress.activities.completed
    for number in range(1, required + 1):
        activity_id = f"{machine.module_id}-activity-{number}"
        done = activity_id in completed
        if st.button(
            f"{'✓ ' if done else ''}Activity {number}",
            key=f"activity_{activity_id}",
            disabled=done,
        ):
            machine.complete_activity(activity_id)
            st.session_state.store.mark_activity_completed(activity_id)
            save_progress()
            st.rerun()


def render_post_test_step(machine: StepStateMachine):
    st.subheader("Post-test")
    post_test = machine.progress.post_test
    if post_test.completed:
        st.success(f"Score: {post_test.score}%")

    for index, question in enumerate(machine.definition.post_test):
        current = post_test.answers[index] if index < len(post_test.answers) else None
        choice = st.radio(
            f"**Question {index + 1}:** {question.prompt}",
            options=list(range(len(question.options))),
            format_func=lambda option, q=question: q.options[option],
            index=current,
            key=f"post_{machine.module_id}_{index}",
            disabled=post_test.completed,
        )
        if choice is not None and choice != current:
            machine.record_answer(index, choice)
            save_progress()


def render_reflection_step(machine: StepStateMachine):
    st.subheader("Reflection")
    reflection = machine.progress.reflection
    existing = reflection.responses if isinstance(reflection.responses, str) else ""
    text = st.text_area(
        "What surprised you in this module? Where could you use it?",
        value=existing,
        key=f"reflection_{machine.module_id}",
    )
    if st.button("Save reflection", key=f"save_reflection_{machine.module_id}"):
        if machine.save_reflection(text.strip()):
            save_progress()
            st.success("Reflection saved.")
        else:
            st.warning("Write something before saving.")


def render_step_navigation(machine: StepStateMachine):
    """Render Back / Next buttons for the step machine."""
    st.divider()
    col1, col2, col3 = st.columns([1, 2, 1])

    with col1:
        if machine.index > 0:
            if st.button("← Back", use_container_width=True):
                machine.retreat()
                st.rerun()

    with col2:
        pos, total = machine.position()
        st.markdown(f"<center>Step {pos} of {total}</center>", unsafe_allow_html=True)

    with col3:
        label = "Finish module" if machine.is_last_step else "Next →"
        if machine.progress.completed and machine.is_last_step:
            return
        if st.button(label, type="primary", use_container_width=True):
            transition = machine.advance()
            if not transition.moved:
                st.warning(transition.reason)
                return
            save_progress()
            if transition.completed_module:
                score = machine.progress.mastery_score
                st.session_state.completion_notice = (
                    f"Module completed with {score}%."
                    + (f" Unlocked: {', '.join(transition.unlocked)}" if transition.unlocked else "")
                )
                st.session_state.current_module_id = st.session_state.navigator.last_incomplete_module()
            st.rerun()


# -----------------------------------------------------------------------------
# Backup View
# -----------------------------------------------------------------------------

def render_backup_view():
    """QR backup string and JSON file transfer."""
    if st.session_state.curriculum is None:
        st.error("Curriculum could not be loaded.")
        return

    store = st.session_state.store
    settings = st.session_state.settings

    st.title("Backup & Restore")
    tab1, tab2 = st.tabs(["QR Backup", "Progress File"])

    with tab1:
        if st.button("Create backup code"):
            result = encode_backup(store, max_bytes=settings.backup_max_bytes)
            if result.ok:
                st.caption(f"{result.size} of {settings.backup_max_bytes} bytes")
                st.code(result.text, language="json")
            else:
                st.error(result.message)

        pasted = st.text_area("Paste a backup code")
        if st.button("Restore from code") and pasted:
            result = restore_backup(store, pasted.strip())
            if result.ok:
                save_progress()
                replace_store_views()
                restored = " and ".join(result.restored)
                st.success(f"Restored {restored}.")
            else:
                st.error(result.message)

    with tab2:
        st.download_button(
            "Export progress",
            data=export_progress_file(store),
            file_name="pragmatica-progress.json",
            mime="application/json",
        )

        uploaded = st.file_uploader("Import progress", type=["json"])
        if uploaded is not None and st.button("Import"):
            text = uploaded.getvalue().decode("utf-8", errors="replace")
            result = import_progress_file(store, text)
            if result.ok:
                save_progress()
                replace_store_views()
                st.success(result.message)
            else:
                st.error(result.message)

    st.divider()
    if st.button("Reset all progress"):
        store.reset()
        if not st.session_state.persistence.clear():
            st.error("Failed to reset saved progress.")
        replace_store_views()
        st.rerun()


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()

    if st.session_state.curriculum is not None:
        render_warnings()
        notice = st.session_state.pop("completion_notice", None)
        if notice:
            st.success(notice)

    # Main content based on view mode
    if st.session_state.view_mode == "modules":
        render_module_view()
    elif st.session_state.view_mode == "backup":
        render_backup_view()


if __name__ == "__main__":
    main()
