"""Command line interface for the job tracker."""
from __future__ import annotations

import argparse
import asyncio
import base64
import json
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .assistant import AssistantChat
from .autosave import ResumeAutosave
from .config import Settings
from .generation import AIContentGenerator, GenerationDependencyError, GenerationError
from .jobs import Job, JobOrigin, JobStatus, new_job
from .log import configure_logging, get_logger
from .notifier import MessageLog, MessageRole, TransitionNotifier
from .partition import active_content, active_content_field, classify, partition
from .persistence import PersistenceError
from .regeneration import RegenerationController, RegenerationInProgressError
from .resume import SCALAR_FIELDS, Resume
from .stats import summarize
from .store import JobStore, UnknownJobError

log = get_logger(__name__)


@dataclass
class Session:
    settings: Settings
    service: object
    store: JobStore
    notifier: TransitionNotifier

    def generator(self, *, skills: str = "") -> AIContentGenerator:
        return AIContentGenerator(
            api_key=self.settings.openai_api_key,
            model=self.settings.model,
            image_model=self.settings.image_model,
            timeout=self.settings.generation_timeout,
            skills=skills or "general professional skills",
        )

    async def resume(self) -> Resume:
        return Resume.from_record(await self.service.load_resume())  # type: ignore[attr-defined]


def _load_inbox(path: Path) -> TransitionNotifier:
    if not path.exists():
        return TransitionNotifier(MessageLog.with_welcome())
    data = json.loads(path.read_text(encoding="utf-8"))
    notifier = TransitionNotifier(MessageLog.from_snapshot(data.get("messages")))
    notifier.unread = bool(data.get("unread", False))
    return notifier


def _save_inbox(path: Path, notifier: TransitionNotifier) -> None:
    payload = {"messages": notifier.messages.to_snapshot(), "unread": notifier.unread}
    path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


async def load_or_init(args: argparse.Namespace) -> Session:
    settings = Settings.from_env()
    if args.data:
        settings.data_path = Path(args.data)
    service = settings.build_service()
    notifier = _load_inbox(settings.inbox_path)
    store = JobStore(service, notifier=notifier)
    await store.load()
    return Session(settings=settings, service=service, store=store, notifier=notifier)


def save_and_exit(session: Session) -> None:
    _save_inbox(session.settings.inbox_path, session.notifier)


def _require(session: Session, job_id: str) -> Job:
    job = session.store.get(job_id)
    if job is None:
        raise SystemExit(f"No job found with id {job_id}")
    return job


def _describe(job: Job) -> str:
    return f"{job.id}  [{job.status.value:<9}] {job.role} @ {job.company} ({job.location}, {job.date_applied})"


def _load_description(args: argparse.Namespace) -> str:
    if args.description_file:
        return Path(args.description_file).read_text(encoding="utf-8")
    return args.description or ""


async def cmd_list(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    applications, offers = partition(session.store.jobs)
    if not args.offers:
        print("Applications:")
        for job in applications:
            print(f"  {_describe(job)}")
        if not applications:
            print("  None yet.")
    if not args.applications:
        print("Offers:")
        for job in offers:
            print(f"  {_describe(job)}")
        if not offers:
            print("  None yet.")
    if session.notifier.unread:
        print("\nYou have unread messages from the assistant (run 'jobtrail inbox').")


async def cmd_add(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    origin = JobOrigin.OFFER if args.offer else JobOrigin.APPLICATION
    draft = new_job(
        args.company,
        args.role,
        origin=origin,
        status=JobStatus.parse(args.status) if args.status else None,
        location=args.location or "",
        salary=args.salary or "",
        email=args.email or "",
        description=_load_description(args),
    )
    if args.no_ai:
        job = await session.store.add(draft)
    else:
        resume = await session.resume()
        controller = RegenerationController(session.store, session.generator(skills=resume.skills))
        job = await controller.create(draft)
    save_and_exit(session)
    print(f"Added {job.role} at {job.company} as {classify(job).value} ({job.id}).")


async def cmd_status(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    job = _require(session, args.job_id)
    # any assistant message is appended before the remote write and must outlive its failure
    try:
        updated = await session.store.update(job.with_changes(status=args.status), observing_chat=args.chat)
    finally:
        save_and_exit(session)
    print(f"{updated.role} at {updated.company} is now {updated.status.value}.")
    if session.notifier.unread:
        print("New message from the assistant (run 'jobtrail inbox').")


async def cmd_edit(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    job = _require(session, args.job_id)
    changes = {
        name: getattr(args, name)
        for name in ("company", "role", "location", "salary", "email")
        if getattr(args, name) is not None
    }
    if args.description is not None or args.description_file:
        changes["description"] = _load_description(args)
    if args.origin:
        changes["origin"] = args.origin
    if not changes:
        raise SystemExit("Nothing to change; pass at least one field option.")
    try:
        updated = await session.store.update(job.with_changes(**changes))
    finally:
        save_and_exit(session)
    print(f"Updated {updated.id}.")


async def cmd_delete(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    job = _require(session, args.job_id)
    try:
        await session.store.delete(job.id)
    finally:
        save_and_exit(session)
    print(f"Deleted {job.role} at {job.company}.")


async def cmd_regenerate(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    _require(session, args.job_id)
    resume = await session.resume()
    controller = RegenerationController(session.store, session.generator(skills=resume.skills))
    try:
        job = await controller.regenerate(args.job_id)
    finally:
        save_and_exit(session)
    print(f"Regenerated {active_content_field(job).replace('_', ' ')} for {job.role} at {job.company}.")


async def cmd_show(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    job = _require(session, args.job_id)
    print(_describe(job))
    print(f"  List: {classify(job).value}")
    if job.salary:
        print(f"  Salary: {job.salary}")
    if job.email:
        print(f"  Contact: {job.email}")
    if job.description:
        print("\nDescription:\n" + job.description)
    heading = active_content_field(job).replace("_", " ").title()
    print(f"\n{heading}:\n{active_content(job) or 'No content generated yet.'}")


async def cmd_inbox(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    for message in session.notifier.messages:
        speaker = "You" if message.role is MessageRole.USER else "Claire"
        print(f"{speaker}: {message.text}\n")
    session.notifier.chat_opened()
    save_and_exit(session)


async def cmd_chat(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    session.notifier.chat_opened()
    chat = AssistantChat(session.notifier.messages, session.generator())
    reply = await chat.send(" ".join(args.text))
    save_and_exit(session)
    print(f"Claire: {reply.text}")


async def cmd_stats(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    stats = summarize(session.store.jobs, days=args.days)
    print(f"Total applied: {stats.total_applications}")
    print(f"Interviewing:  {stats.interviewing}")
    print(f"Offers:        {stats.offers}")
    print(f"Rejected:      {stats.rejected}")
    print("\nBy status:")
    for status, count in stats.by_status.items():
        print(f"  {status.value:<9} {count}")
    print("\nActivity (applications / offers):")
    for day in stats.activity:
        print(f"  {day.day}  {day.applications:>3} / {day.offers:<3}")
    if stats.accepted:
        print("\nAccepted offers:")
        for job in stats.accepted:
            print(f"  {job.role} @ {job.company}")


async def cmd_resume_show(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    resume = await session.resume()
    print(f"{resume.full_name or '(no name)'}")
    print(" | ".join(bit for bit in (resume.email, resume.phone) if bit))
    if resume.summary:
        print(f"\n{resume.summary}")
    if resume.skills:
        print("\nSkills: " + ", ".join(resume.skill_list()))
    for label, entries in (("Experience", resume.experience), ("Education", resume.education)):
        if entries:
            print(f"\n{label}:")
            for entry in entries:
                print(f"  {entry.title} — {entry.company} ({entry.date})")
                if entry.details:
                    print(f"    {entry.details}")
    if resume.projects:
        print("\nProjects:")
        for project in resume.projects:
            print(f"  {project.name} [{project.technologies}] {project.link}".rstrip())
    if resume.avatar:
        print("\nAvatar attached.")


async def _save_resume(session: Session, resume: Resume) -> None:
    autosave = ResumeAutosave(session.service, delay=session.settings.autosave_delay)  # type: ignore[arg-type]
    autosave.schedule(resume)
    if await autosave.flush():
        return
    if resume.is_blank():
        raise SystemExit("The resume is empty; nothing was saved.")
    raise SystemExit("Could not save the resume; see the log for details.")


async def cmd_resume_set(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    resume = await session.resume()
    resume.set_field(args.field, args.value)
    await _save_resume(session, resume)
    print(f"Resume {args.field} updated.")


async def cmd_resume_import(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    path = Path(args.file)
    mime_type = mimetypes.guess_type(path.name)[0] or "text/plain"
    generator = session.generator()
    try:
        parsed = await generator.parse_resume(path.read_bytes(), mime_type)
    except (GenerationError, GenerationDependencyError) as exc:
        raise SystemExit(f"Could not process the resume: {exc}") from exc
    resume = await session.resume()
    resume.apply_parsed(parsed)
    await _save_resume(session, resume)
    print(f"Imported resume for {resume.full_name or 'unnamed candidate'}.")


async def cmd_avatar(args: argparse.Namespace) -> None:
    session = await load_or_init(args)
    photo = Path(args.photo)
    mime_type = mimetypes.guess_type(photo.name)[0] or "image/png"
    generator = session.generator()
    try:
        image = await generator.generate_avatar(photo.read_bytes(), args.style or "", mime_type=mime_type)
    except (GenerationError, GenerationDependencyError) as exc:
        raise SystemExit(f"Failed to generate image: {exc}") from exc
    out = Path(args.out)
    out.write_bytes(image)
    print(f"Avatar saved to {out}")
    if args.attach:
        resume = await session.resume()
        resume.attach_avatar("data:image/png;base64," + base64.b64encode(image).decode("ascii"))
        await _save_resume(session, resume)
        print("Avatar attached to resume.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="jobtrail job application tracker")
    parser.add_argument("--data", help="Path of the local JSON data file (ignored with Supabase)")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Override JOBTRAIL_LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_cmd = subparsers.add_parser("list", help="List tracked applications and offers")
    only = list_cmd.add_mutually_exclusive_group()
    only.add_argument("--offers", action="store_true", help="Only show offers")
    only.add_argument("--applications", action="store_true", help="Only show applications")
    list_cmd.set_defaults(func=cmd_list)

    add = subparsers.add_parser("add", help="Track a new application or offer")
    add.add_argument("--company", required=True)
    add.add_argument("--role", required=True)
    add.add_argument("--offer", action="store_true", help="Record as an offer instead of an application")
    add.add_argument("--status", choices=[member.value for member in JobStatus])
    add.add_argument("--location")
    add.add_argument("--salary")
    add.add_argument("--email")
    add.add_argument("--description")
    add.add_argument("--description-file")
    add.add_argument("--no-ai", action="store_true", help="Skip cover letter / interview guide generation")
    add.set_defaults(func=cmd_add)

    status_cmd = subparsers.add_parser("status", help="Change the status of a job")
    status_cmd.add_argument("job_id")
    status_cmd.add_argument("status", choices=[member.value for member in JobStatus])
    status_cmd.add_argument("--chat", action="store_true", help="Treat the assistant chat as open")
    status_cmd.set_defaults(func=cmd_status)

    edit = subparsers.add_parser("edit", help="Edit the details of a job")
    edit.add_argument("job_id")
    edit.add_argument("--company")
    edit.add_argument("--role")
    edit.add_argument("--location")
    edit.add_argument("--salary")
    edit.add_argument("--email")
    edit.add_argument("--description")
    edit.add_argument("--description-file")
    edit.add_argument("--origin", choices=[origin.value for origin in JobOrigin])
    edit.set_defaults(func=cmd_edit)

    delete = subparsers.add_parser("delete", help="Stop tracking a job")
    delete.add_argument("job_id")
    delete.set_defaults(func=cmd_delete)

    regenerate = subparsers.add_parser("regenerate", help="Regenerate the cover letter or interview guide")
    regenerate.add_argument("job_id")
    regenerate.set_defaults(func=cmd_regenerate)

    show = subparsers.add_parser("show", help="Show a job with its generated content")
    show.add_argument("job_id")
    show.set_defaults(func=cmd_show)

    inbox = subparsers.add_parser("inbox", help="Read messages from the assistant")
    inbox.set_defaults(func=cmd_inbox)

    chat = subparsers.add_parser("chat", help="Ask the assistant a question")
    chat.add_argument("text", nargs="+")
    chat.set_defaults(func=cmd_chat)

    stats_cmd = subparsers.add_parser("stats", help="Show dashboard figures")
    stats_cmd.add_argument("--days", type=int, default=7)
    stats_cmd.set_defaults(func=cmd_stats)

    resume = subparsers.add_parser("resume", help="View or edit the resume")
    resume_sub = resume.add_subparsers(dest="resume_command", required=True)
    resume_show = resume_sub.add_parser("show", help="Print the resume")
    resume_show.set_defaults(func=cmd_resume_show)
    resume_set = resume_sub.add_parser("set", help="Set a top-level resume field")
    resume_set.add_argument("field", choices=[name for name in SCALAR_FIELDS if name != "avatar"])
    resume_set.add_argument("value")
    resume_set.set_defaults(func=cmd_resume_set)
    resume_import = resume_sub.add_parser("import", help="Parse a resume file with AI and load it")
    resume_import.add_argument("file")
    resume_import.set_defaults(func=cmd_resume_import)

    avatar = subparsers.add_parser("avatar", help="Generate a professional headshot from a photo")
    avatar.add_argument("photo")
    avatar.add_argument("--out", required=True)
    avatar.add_argument("--style")
    avatar.add_argument("--attach", action="store_true", help="Attach the result to the resume")
    avatar.set_defaults(func=cmd_avatar)

    return parser


def main(argv: List[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.log_level:
        configure_logging(args.log_level)
    try:
        asyncio.run(args.func(args))
    except (PersistenceError, RegenerationInProgressError, GenerationDependencyError) as exc:
        raise SystemExit(str(exc)) from exc
    except UnknownJobError as exc:
        raise SystemExit(f"No job found with id {exc.args[0]}") from exc
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc


if __name__ == "__main__":
    main()
