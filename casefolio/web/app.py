from __future__ import annotations

import chainlit as cl
from chainlit.input_widget import Select, TextInput

from casefolio.config import CATEGORIES, Settings
from casefolio.github import GitHubError, list_repos
from casefolio.ingest import GITHUB_URL_RE, draft_from_repo
from casefolio.llm import get_llm
from casefolio.service import ProjectService, UnauthorizedError, ValidationError
from casefolio.session import PasswordGate
from casefolio.store import ConflictError, DocumentStore, StoreError

AUTHOR = "casefolio"

settings = Settings.from_env()
gate = PasswordGate(settings.admin_password)
service = ProjectService(DocumentStore(settings.data_file, settings.mirror_file), gate)

EDITABLE_FIELDS = [
    ("title", "Title"),
    ("slug", "Slug"),
    ("description", "Description"),
    ("liveUrl", "Live URL"),
    ("technologies", "Technologies"),
    ("tags", "Tags"),
]


def _draft_to_markdown(draft: dict) -> str:
    case_study = draft.get("caseStudy") or {}
    overview = case_study.get("overview") or {}
    lines = [
        "**Generated draft**",
        "",
        f"- **Title:** {draft.get('title', '')}",
        f"- **Slug:** `{draft.get('slug', '')}`",
        f"- **Description:** {draft.get('description', '')}",
        f"- **Category:** {draft.get('category') or '(none)'}",
        f"- **Type:** {draft.get('projectType', '')}",
        f"- **GitHub:** {draft.get('githubUrl') or '(none)'}",
        f"- **Live URL:** {draft.get('liveUrl') or '(none)'}",
        "- **Technologies:** " + (", ".join(draft.get("technologies") or []) or "(none)"),
        "- **Tags:** " + (", ".join(draft.get("tags") or []) or "(none)"),
    ]
    if overview.get("summary"):
        lines += ["", f"> {overview['summary']}"]
    sections = [name for name in case_study if case_study.get(name)]
    if sections:
        lines += ["", "Case study sections: " + ", ".join(sections)]
    return "\n".join(lines)


def _review_actions(draft: dict, again: bool = False) -> list:
    return [
        cl.Action(name="approve_draft", label="Create project", payload={"draft": draft}),
        cl.Action(name="edit_draft", label="Edit again" if again else "Edit", payload={"draft": draft}),
        cl.Action(name="cancel_draft", label="Cancel", payload={}),
    ]


@cl.password_auth_callback
def auth_callback(username: str, password: str):
    if gate.check_password(password):
        return cl.User(identifier=username or "admin", metadata={"role": "admin"})
    return None


@cl.on_chat_start
async def on_chat_start():
    await cl.ChatSettings(
        [
            Select(
                id="provider",
                label="LLM provider",
                values=["ollama", "openai"],
                initial_index=0 if settings.llm_provider == "ollama" else 1,
            ),
            Select(
                id="category",
                label="Case study category",
                values=["auto", *CATEGORIES],
                initial_index=0,
            ),
            TextInput(
                id="notes",
                label="Extra notes for the draft",
                placeholder="My role, team size, measured results...",
                initial="",
            ),
        ]
    ).send()
    context: dict = {}
    if cl.user_session.get("user"):
        gate.grant(context)
    cl.user_session.set("gate_context", context)
    cl.user_session.set("settings", {"provider": settings.llm_provider})
    await cl.Message(
        content="Paste a GitHub repo URL (or just the repo name) and I'll draft a portfolio entry with a case study. Say **repos** to list your repositories.",
        author=AUTHOR,
    ).send()


@cl.on_settings_update
async def on_settings_update(new_settings: dict):
    cl.user_session.set("settings", new_settings)


@cl.on_message
async def on_message(message: cl.Message):
    text = (message.content or "").strip()
    if not text:
        await cl.Message(content="Send a GitHub repo URL or repo name.", author=AUTHOR).send()
        return

    if text.lower() == "repos":
        try:
            async with cl.Step(name="Fetching repositories", type="tool") as step:
                repos = await cl.make_async(list_repos)(
                    settings.github_username, settings.github_token or None
                )
                step.output = f"{len(repos)} repo(s)"
            imported = {p.get("githubUrl") for p in service.list_projects()}
        except (GitHubError, StoreError) as e:
            await cl.Message(content=f"Could not list repositories: {e}", author=AUTHOR).send()
            return
        lines = [
            f"- `{r['name']}` {r.get('description') or ''}"
            + (" (already imported)" if r["githubUrl"] in imported else "")
            for r in repos
        ]
        await cl.Message(content="\n".join(lines) or "No repositories found.", author=AUTHOR).send()
        return

    chat_settings = cl.user_session.get("settings") or {}
    try:
        llm = get_llm(chat_settings.get("provider") or settings.llm_provider)
    except (ValueError, EnvironmentError) as e:
        await cl.Message(
            content=f"LLM setup failed: {e}. Set **OPENAI_API_KEY** for OpenAI, or use Ollama (default).",
            author=AUTHOR,
        ).send()
        return

    url_match = GITHUB_URL_RE.search(text)
    repo = url_match.group(0) if url_match else text.split()[0]
    extra = text.replace(repo, "").strip() or None
    notes = "\n".join(n for n in (chat_settings.get("notes"), extra) if n) or None
    category = chat_settings.get("category")

    try:
        async with cl.Step(name="Drafting project from repository", type="tool") as step:
            draft = await cl.make_async(draft_from_repo)(
                llm,
                repo,
                token=settings.github_token or None,
                default_owner=settings.github_username,
                category=None if category in (None, "auto") else category,
                user_description=notes,
            )
            step.output = draft.get("title", "")
    except Exception as e:
        err_msg = str(e).lower()
        if "connection refused" in err_msg or "errno 111" in err_msg:
            await cl.Message(
                content=(
                    "**Draft generation failed:** the LLM backend could not be reached.\n\n"
                    "- If you use **Ollama**, start it (`ollama serve`).\n"
                    "- Or switch the provider to **OpenAI** in settings and set `OPENAI_API_KEY`."
                ),
                author=AUTHOR,
            ).send()
            return
        await cl.Message(content=f"Draft generation failed: {e}", author=AUTHOR).send()
        return

    await cl.Message(
        content=_draft_to_markdown(draft),
        actions=_review_actions(draft),
        author=AUTHOR,
    ).send()


@cl.action_callback("cancel_draft")
async def on_cancel_draft(action: cl.Action):
    await cl.Message(content="Cancelled. Nothing was saved.", author=AUTHOR).send()


@cl.action_callback("edit_draft")
async def on_edit_draft(action: cl.Action):
    draft = (action.payload or {}).get("draft")
    if not draft:
        await cl.Message(content="No draft to edit.", author=AUTHOR).send()
        return
    actions = [
        cl.Action(name="edit_field", payload={"draft": draft, "field": field}, label=label)
        for field, label in EDITABLE_FIELDS
    ]
    actions.append(
        cl.Action(name="edit_field", payload={"draft": draft, "field": "done"}, label="Done editing")
    )
    await cl.Message(content="Which field do you want to change?", actions=actions, author=AUTHOR).send()


@cl.action_callback("edit_field")
async def on_edit_field(action: cl.Action):
    payload = action.payload or {}
    draft = dict(payload.get("draft") or {})
    field = payload.get("field")
    if not draft:
        await cl.Message(content="No draft to edit.", author=AUTHOR).send()
        return

    if field in ("technologies", "tags"):
        new_val = await cl.AskUserMessage(content=f"Enter {field} (comma-separated):", timeout=60)
        if new_val and new_val.get("output"):
            draft[field] = [x.strip() for x in new_val["output"].split(",") if x.strip()]
    elif field and field != "done":
        cur = draft.get(field) or ""
        new_val = await cl.AskUserMessage(
            content=f"Current value: `{cur}`. Enter new value (or leave empty to keep):",
            timeout=60,
        )
        if new_val and (new_val.get("output") or "").strip():
            draft[field] = new_val["output"].strip()

    await cl.Message(
        content=_draft_to_markdown(draft),
        actions=_review_actions(draft, again=True),
        author=AUTHOR,
    ).send()


@cl.action_callback("approve_draft")
async def on_approve_draft(action: cl.Action):
    draft = (action.payload or {}).get("draft")
    if not draft:
        await cl.Message(content="No draft in payload.", author=AUTHOR).send()
        return

    context = cl.user_session.get("gate_context") or {}
    try:
        project = await cl.make_async(service.create_project)(draft, context)
    except UnauthorizedError:
        await cl.Message(content="Your session has expired. Log in again.", author=AUTHOR).send()
        return
    except ConflictError as e:
        await cl.Message(
            content=f"{e}. Edit the slug and approve again.",
            actions=_review_actions(draft, again=True),
            author=AUTHOR,
        ).send()
        return
    except (ValidationError, StoreError) as e:
        await cl.Message(content=f"Could not create project: {e}", author=AUTHOR).send()
        return

    await cl.Message(
        content=f"Done. **{project['title']}** is now in your portfolio at `/project/{project['slug']}`.",
        author=AUTHOR,
    ).send()
