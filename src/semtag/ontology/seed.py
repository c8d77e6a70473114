"""Built-in concept forest.

Subjects are roots; math topics hang under Mathematics with their
subtopics below. Skills and operations are separate roots so they can
activate independently of subject matter.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TagSeed:
    id: str
    name: str
    kind: str
    description: str
    parent_id: str | None = None
    aliases: tuple[str, ...] = field(default_factory=tuple)


def _tag(
    id: str,
    name: str,
    kind: str,
    description: str,
    parent_id: str | None = None,
    aliases: tuple[str, ...] = (),
) -> TagSeed:
    return TagSeed(id=id, name=name, kind=kind, description=description, parent_id=parent_id, aliases=aliases)


ONTOLOGY_SEED: tuple[TagSeed, ...] = (
    # Subjects
    _tag("subject.mathematics", "Mathematics", "topic", "Problems involving numbers, algebra, geometry, calculus, probability, and quantitative reasoning."),
    _tag("subject.physics", "Physics", "topic", "Problems about motion, forces, energy, waves, electricity, magnetism, and physical laws."),
    _tag("subject.chemistry", "Chemistry", "topic", "Problems about matter, atoms, molecules, reactions, stoichiometry, bonding, and chemical properties."),
    _tag("subject.biology", "Biology", "topic", "Questions about living organisms: cells, genetics, evolution, physiology, ecology, and life processes."),
    _tag("subject.english", "English", "topic", "Language, grammar, comprehension, writing skills, vocabulary, and literary analysis."),
    _tag("subject.history", "History", "topic", "Questions about historical periods, events, causes, consequences, and chronology."),
    _tag("subject.evs", "EVS", "topic", "Environmental studies: ecosystems, resources, health, hygiene, community, and sustainability."),
    _tag("subject.social_science", "Social Science", "topic", "Civics, geography, economics, and society: institutions, maps, resources, and human systems."),
    # Mathematics
    _tag("topic.arithmetic", "Arithmetic", "topic", "Foundational numerical computation with integers, fractions, decimals, and ratios.", "subject.mathematics"),
    _tag("subtopic.fractions", "Fractions", "subtopic", "Manipulating and reasoning about fractions, equivalent forms, and operations on fractions.", "topic.arithmetic", ("rational numbers",)),
    _tag("subtopic.percent", "Percentages", "subtopic", "Percent representation, conversions, and applications like discount, growth, and comparison.", "topic.arithmetic", ("percent",)),
    _tag("subtopic.ratio", "Ratio & Proportion", "subtopic", "Comparisons using ratios, proportional reasoning, scaling, and unit rate.", "topic.arithmetic", ("proportion",)),
    _tag("topic.algebra", "Algebra", "topic", "Symbolic manipulation, expressions, equations, and relationships between quantities.", "subject.mathematics"),
    _tag("subtopic.linear", "Linear Equations", "subtopic", "Solving and interpreting linear equations and inequalities in one or more variables.", "topic.algebra", ("linear inequality",)),
    _tag("subtopic.quadratic", "Quadratic Equations", "subtopic", "Solving quadratics by factoring, completing the square, and formula; analyzing roots and graphs.", "topic.algebra"),
    _tag("subtopic.polynomials", "Polynomials", "subtopic", "Operations on polynomials including factoring, identities, division, and degree reasoning.", "topic.algebra", ("factorization",)),
    _tag("subtopic.functions", "Functions", "subtopic", "Understanding function definitions, domain/range, composition, inverses, and transformations.", "topic.algebra"),
    _tag("topic.geometry", "Geometry", "topic", "Shapes, measurements, properties of figures, and geometric reasoning.", "subject.mathematics"),
    _tag("subtopic.triangles", "Triangles", "subtopic", "Triangle properties, congruence, similarity, and trigonometric/metric relationships.", "topic.geometry"),
    _tag("subtopic.circles", "Circles", "subtopic", "Circle theorems, chords, tangents, angles, arcs, and circle equations.", "topic.geometry"),
    _tag("subtopic.coordinate", "Coordinate Geometry", "subtopic", "Geometry using coordinate systems: distance, slope, lines, curves, and loci.", "topic.geometry", ("analytic geometry",)),
    _tag("topic.trigonometry", "Trigonometry", "topic", "Trigonometric functions, identities, equations, and applications to angles and periodic behavior.", "subject.mathematics"),
    _tag("subtopic.trig-identities", "Trig Identities", "subtopic", "Using and transforming trigonometric identities to simplify or solve expressions.", "topic.trigonometry"),
    _tag("topic.calculus", "Calculus", "topic", "Limits, derivatives, integrals, and reasoning about change and accumulation.", "subject.mathematics"),
    _tag("subtopic.derivatives", "Derivatives", "subtopic", "Differentiation rules, interpretation as rate of change, and applications like optimization.", "topic.calculus"),
    _tag("subtopic.integrals", "Integrals", "subtopic", "Integration techniques, areas/accumulation, and fundamental theorem applications.", "topic.calculus"),
    _tag("topic.probability", "Probability", "topic", "Quantifying uncertainty with events, sample spaces, counting, and probabilistic reasoning.", "subject.mathematics"),
    _tag("topic.statistics", "Statistics", "topic", "Describing and inferring from data using measures, distributions, and models.", "subject.mathematics"),
    # Physics
    _tag("topic.physics.mechanics", "Mechanics", "topic", "Motion, forces, Newton's laws, work-energy, momentum, and rotational dynamics.", "subject.physics"),
    _tag("topic.physics.electricity", "Electricity & Magnetism", "topic", "Charge, current, circuits, fields, potential, magnetism, and electromagnetic induction.", "subject.physics"),
    _tag("topic.physics.waves", "Waves & Optics", "topic", "Wave properties, sound, light, reflection, refraction, lenses, and interference.", "subject.physics"),
    # Chemistry
    _tag("topic.chem.atomic", "Atomic Structure", "topic", "Atoms, subatomic particles, electron configuration, periodicity, and atomic models.", "subject.chemistry"),
    _tag("topic.chem.bonding", "Chemical Bonding", "topic", "Ionic/covalent bonding, structure, polarity, intermolecular forces, and bonding models.", "subject.chemistry"),
    _tag("topic.chem.stoichiometry", "Stoichiometry", "topic", "Moles, balanced equations, limiting reagent, concentration, and quantitative reaction calculations.", "subject.chemistry"),
    # Biology
    _tag("topic.bio.cell", "Cell Biology", "topic", "Cells, organelles, membranes, transport, and basic cellular processes.", "subject.biology"),
    _tag("topic.bio.genetics", "Genetics", "topic", "Inheritance, DNA/RNA, Mendelian patterns, mutation, and genetic variation.", "subject.biology"),
    _tag("topic.bio.ecology", "Ecology", "topic", "Ecosystems, food chains/webs, biodiversity, population, and environmental interactions.", "subject.biology"),
    # English
    _tag("topic.eng.grammar", "Grammar", "topic", "Parts of speech, sentence structure, tenses, agreement, and punctuation rules.", "subject.english"),
    _tag("topic.eng.comprehension", "Reading Comprehension", "topic", "Understanding passages, inference, main idea, tone, and evidence-based answers.", "subject.english"),
    _tag("topic.eng.vocab", "Vocabulary", "topic", "Word meaning, usage, synonyms/antonyms, and context-based word choice.", "subject.english"),
    # History
    _tag("topic.history.ancient", "Ancient History", "topic", "Early civilizations, empires, timelines, and foundational historical developments.", "subject.history"),
    _tag("topic.history.modern", "Modern History", "topic", "Modern periods, movements, colonization, independence, and key global events.", "subject.history"),
    # EVS
    _tag("topic.evs.environment", "Environment", "topic", "Natural resources, pollution, conservation, climate, and sustainability practices.", "subject.evs"),
    _tag("topic.evs.health", "Health & Hygiene", "topic", "Nutrition, disease prevention, personal hygiene, and public health basics.", "subject.evs"),
    # Social science
    _tag("topic.ss.geography", "Geography", "topic", "Maps, landforms, climate, resources, population, and spatial human-environment systems.", "subject.social_science"),
    _tag("topic.ss.civics", "Civics", "topic", "Government, constitution, rights/duties, institutions, and civic processes.", "subject.social_science"),
    _tag("topic.ss.economics", "Economics", "topic", "Production, consumption, markets, money, basic economic reasoning, and development.", "subject.social_science"),
    # Skills
    _tag("skill.symbolic-manipulation", "Symbolic Manipulation", "skill", "Algebraic rearrangement, simplification, substitution, and transformation of symbolic expressions."),
    _tag("skill.conceptual-reasoning", "Conceptual Reasoning", "skill", "Explaining or proving relationships, interpreting meaning, and reasoning beyond computation."),
    _tag("skill.procedural-execution", "Procedural Execution", "skill", "Executing a known method or algorithmic procedure with accuracy and speed."),
    _tag("skill.multi-step-reasoning", "Multi-step Reasoning", "skill", "Solving problems requiring multiple dependent reasoning steps and intermediate results."),
    # Operations
    _tag("operation.simplify", "Simplify", "operation", "Reducing an expression to an equivalent simpler form."),
    _tag("operation.solve", "Solve", "operation", "Finding values satisfying equations, inequalities, or constraints."),
    _tag("operation.prove", "Prove/Justify", "operation", "Providing a logical argument establishing a statement."),
    _tag("operation.compute", "Compute", "operation", "Carrying out calculations to obtain a numeric or symbolic result."),
)
