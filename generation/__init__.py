"""
Question Paper Generation Pipeline
generation/

Steps:
1. Blueprint Builder    — template row → TemplateBlueprint, section_type → allowed question types
2. Retrieval Engine     — equality-filtered question pool per section (newest first)
3. Section Resolver     — drop already-used ids, optional Fisher–Yates shuffle, take N
4. Paper Assembler      — resolve sections in declared order, totals, completeness, warnings
5. Usage Tracker        — increment usage_count on questions saved into an exam

Side pipeline:
- Question Extractor    — PDF / Word / text / image → draft questions via the GPT client
- Question Variants     — rule-based difficulty, type, Bloom's and shuffled-option variants
"""
