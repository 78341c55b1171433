"""
Seed script for the global subject catalogue and the comments library.

This script:
1. Inserts core subjects for grades 1-12 and electives for grades 10-12 (codes like MATH07, ACC10)
2. Adds one English and one Afrikaans comment per subject and performance level

Re-running updates names/categories in place and only adds missing comments.

Usage:
  python -m app.db.seed_subjects
"""
import asyncio
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import CommentCategory, Language, PerformanceLevel, SubjectCategory
from app.core.models import CommentLibraryEntry, Subject
from app.db.session import AsyncSessionLocal


# (code prefix, English name, Afrikaans name, grades)
CORE_SUBJECTS: List[Tuple[str, str, str, range]] = [
    ("ENHL", "English Home Language", "Engels Huistaal", range(1, 13)),
    ("AFHL", "Afrikaans Home Language", "Afrikaans Huistaal", range(1, 13)),
    ("ENFA", "English First Additional Language", "Engels Eerste Addisionele Taal", range(1, 13)),
    ("AFFA", "Afrikaans First Additional Language", "Afrikaans Eerste Addisionele Taal", range(1, 13)),
    ("MATH", "Mathematics", "Wiskunde", range(1, 13)),
    ("MLIT", "Mathematical Literacy", "Wiskundige Geletterdheid", range(10, 13)),
    ("LIFE", "Life Skills", "Lewensvaardighede", range(1, 7)),
    ("LORI", "Life Orientation", "Lewensoriëntering", range(7, 13)),
    ("NSTECH", "Natural Sciences and Technology", "Natuurwetenskappe en Tegnologie", range(4, 7)),
    ("NSCI", "Natural Sciences", "Natuurwetenskappe", range(7, 10)),
    ("SSCI", "Social Sciences", "Sosiale Wetenskappe", range(4, 10)),
    ("TECH", "Technology", "Tegnologie", range(7, 10)),
    ("EMS", "Economic and Management Sciences", "Ekonomiese en Bestuurswetenskappe", range(7, 10)),
    ("CART", "Creative Arts", "Skeppende Kunste", range(4, 10)),
]

ELECTIVE_SUBJECTS: List[Tuple[str, str, str]] = [
    ("ACC", "Accounting", "Rekeningkunde"),
    ("AMP", "Agricultural Management Practices", "Landboubestuurspraktyke"),
    ("AGS", "Agricultural Sciences", "Landbouwetenskappe"),
    ("BUS", "Business Studies", "Besigheidstudies"),
    ("CAT", "Computer Applications Technology", "Rekenaartoepassingstegnologie"),
    ("CST", "Consumer Studies", "Verbruikerstudies"),
    ("DRA", "Dramatic Arts", "Dramatiese Kunste"),
    ("ECO", "Economics", "Ekonomie"),
    ("EGD", "Engineering Graphics and Design", "Ingenieursgrafika en -ontwerp"),
    ("GEO", "Geography", "Geografie"),
    ("HIS", "History", "Geskiedenis"),
    ("LSC", "Life Sciences", "Lewenswetenskappe"),
    ("PSC", "Physical Sciences", "Fisiese Wetenskappe"),
]

# {name} is replaced with the subject name in the comment's language
COMMENT_TEMPLATES = {
    (Language.english, PerformanceLevel.excellent): "Outstanding work in {name} this term. Keep it up!",
    (Language.english, PerformanceLevel.good): "Good progress in {name}. A little more effort will lead to excellence.",
    (Language.english, PerformanceLevel.average): "Satisfactory work in {name}. Regular practice will improve results.",
    (Language.english, PerformanceLevel.needs_improvement): "{name} needs more attention. Please seek extra help and practise regularly.",
    (Language.afrikaans, PerformanceLevel.excellent): "Uitstekende werk in {name} hierdie kwartaal. Hou so aan!",
    (Language.afrikaans, PerformanceLevel.good): "Goeie vordering in {name}. 'n Bietjie meer moeite sal tot uitnemendheid lei.",
    (Language.afrikaans, PerformanceLevel.average): "Bevredigende werk in {name}. Gereelde oefening sal die uitslae verbeter.",
    (Language.afrikaans, PerformanceLevel.needs_improvement): "{name} benodig meer aandag. Soek asseblief ekstra hulp en oefen gereeld.",
}


def subject_code(prefix: str, grade: int) -> str:
    return f"{prefix}{grade:02d}"


def catalogue() -> List[Tuple[str, str, str, int, str]]:
    rows = []
    for prefix, name_en, name_af, grades in CORE_SUBJECTS:
        for grade in grades:
            rows.append((subject_code(prefix, grade), name_en, name_af, grade, SubjectCategory.core.value))
    for prefix, name_en, name_af in ELECTIVE_SUBJECTS:
        for grade in range(10, 13):
            rows.append((subject_code(prefix, grade), name_en, name_af, grade, SubjectCategory.elective.value))
    return rows


async def seed_subjects(db: AsyncSession) -> None:
    """Upsert the subject catalogue, then add any missing library comments."""
    subjects_created = 0
    subjects_updated = 0

    for code, name_en, name_af, grade, category in catalogue():
        result = await db.execute(select(Subject).where(Subject.code == code))
        existing = result.scalar_one_or_none()
        if existing:
            existing.name_en = name_en
            existing.name_af = name_af
            existing.grade = grade
            existing.category = category
            subjects_updated += 1
        else:
            db.add(Subject(code=code, name_en=name_en, name_af=name_af, grade=grade, category=category))
            subjects_created += 1

    await db.commit()

    comments_created = 0
    result = await db.execute(select(Subject))
    for subject in result.scalars().all():
        existing = await db.execute(
            select(CommentLibraryEntry.language, CommentLibraryEntry.performance_level).where(
                CommentLibraryEntry.subject_id == subject.id
            )
        )
        have = {(row.language, row.performance_level) for row in existing.all()}
        for (language, level), template in COMMENT_TEMPLATES.items():
            if (language.value, level.value) in have:
                continue
            name = subject.name_af if language == Language.afrikaans else subject.name_en
            db.add(
                CommentLibraryEntry(
                    category=CommentCategory.subject_specific.value,
                    language=language.value,
                    comment_text=template.format(name=name),
                    subject_id=subject.id,
                    performance_level=level.value,
                )
            )
            comments_created += 1

    await db.commit()

    print("=" * 60)
    print("Subject Seeding Summary")
    print("=" * 60)
    print(f"Subjects created: {subjects_created}")
    print(f"Subjects updated: {subjects_updated}")
    print(f"Comments created: {comments_created}")
    print("=" * 60)


async def main() -> None:
    async with AsyncSessionLocal() as db:
        try:
            await seed_subjects(db)
        except Exception as e:
            print(f"Error seeding subjects: {e}")
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(main())
