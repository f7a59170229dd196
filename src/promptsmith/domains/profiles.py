"""Built-in domain profiles."""

from __future__ import annotations

import re

from promptsmith.domains.registry import (
    DomainCheck,
    DomainEnhancement,
    DomainProfile,
    DomainRule,
    QualityWeights,
)
from promptsmith.types import Example

_I = re.IGNORECASE


def _rule(name: str, pattern: str, replacement: str, description: str, category: str = "vague") -> DomainRule:
    return DomainRule(
        name=name,
        pattern=re.compile(pattern, _I),
        replacement=replacement,
        description=description,
        category=category,
    )


def _enhance(name: str, trigger: str, addition: str, description: str, unless: str | None = None) -> DomainEnhancement:
    return DomainEnhancement(
        name=name,
        trigger=re.compile(trigger, _I),
        addition=addition,
        description=description,
        unless=re.compile(unless, _I) if unless else None,
    )


GENERAL_RULES = [
    _rule("general_vague_aesthetic", r"\bbonit[oa]s?\b", "well-designed", "Replace vague aesthetic terms"),
    _rule("general_vague_quality", r"\bbuen[oa]s?\b", "high-quality", "Replace vague quality terms"),
    _rule("general_vague_positive", r"\bnice\b", "well-crafted", "Replace generic positive terms"),
    _rule("general_casual_terms", r"\bcool\b", "impressive", "Replace casual terms with professional language"),
]

GENERAL_SYSTEM_PROMPT = """You are a professional assistant with expertise across multiple domains. You provide:

**Clear Communication:**
- Well-structured responses with logical flow
- Professional language appropriate for the context
- Specific, actionable recommendations and guidance

**Quality Focus:**
- Attention to detail and accuracy in all responses
- Best practices and industry standards
- Comprehensive solutions that address user needs

Always strive for clarity, specificity, and professionalism in your responses."""


def _sql() -> DomainProfile:
    return DomainProfile(
        name="sql",
        description="Database design, SQL queries, and database optimization",
        weights=QualityWeights(clarity=0.3, specificity=0.35, structure=0.2, completeness=0.15),
        rules=[
            _rule(
                "sql_vague_table",
                r"\bbonit[oa]s?\s+(?:tablas?|tables?)\b",
                "well-structured, normalized database table",
                'Replace vague "bonita tabla" with professional SQL terminology',
            ),
            _rule(
                "sql_vague_good_query",
                r"\bbuen[oa]s?\s+(?:query|consulta)\b",
                "optimized SQL query with proper indexing",
                "Add performance considerations to a vague query request",
            ),
            _rule(
                "sql_vague_bad_query",
                r"\bmal[oa]\s+(?:query|consulta)\b",
                "inefficient query that needs optimization",
                "Clarify what makes a query problematic",
            ),
            _rule("sql_redundant_sql", r"\btablas?\s+sql\b", "database table schema", "Remove redundant SQL qualifier"),
            _rule("sql_spanish_database", r"\b(?:bd|base\s+de\s+datos)\b", "relational database", "Use English database terminology"),
            _rule("sql_action_verb", r"\bhacer\s+(?:query|consulta)\b", "execute SQL query", "Use proper SQL action verbs"),
            _rule(
                "sql_command_request",
                r"^(?:hazme|dame|necesito)\b(?:\s+una?)?",
                "Generate a database schema for",
                "Convert command to professional request",
                "structure",
            ),
            _rule(
                "sql_design_language",
                r"^(?:create|make|build)\s+(?:a\s+)?table\b",
                "Design a database table",
                "Use design-oriented language",
                "structure",
            ),
            _rule("sql_join", r"\bcon\s+join\b", "including appropriate JOIN operations", "Clarify JOIN requirements", "structure"),
            _rule(
                "sql_fast_query",
                r"\bfast\s+query\b",
                "performance-optimized query with appropriate indexes",
                "Specify how to achieve query performance",
                "structure",
            ),
        ],
        enhancements=[
            _enhance(
                "add_data_type_specs",
                r"\b(?:create|table|schema)\b",
                "Specify appropriate data types for each column (VARCHAR, INTEGER, TIMESTAMP, etc.).",
                "Added data type specifications",
                unless=r"data\s+types?",
            ),
            _enhance(
                "add_index_considerations",
                r"\b(?:performance|fast|slow|optimi[sz]e)\b",
                "Consider appropriate indexes for performance optimization.",
                "Added indexing considerations",
                unless=r"\bindex",
            ),
            _enhance(
                "add_relationship_specs",
                r"\b(?:join|relationship|foreign)\b",
                "Include foreign key constraints and relationship definitions.",
                "Added relationship specifications",
                unless=r"constraint",
            ),
            _enhance(
                "add_naming_conventions",
                r"\b(?:table|column|field)s?\b",
                "Use snake_case naming convention for tables and columns.",
                "Added naming convention guidance",
                unless=r"naming|snake_case",
            ),
        ],
        keyword_groups=[("table", "schema", "database"), ("constraint", "index", "key")],
        detection_keywords=["table", "query", "database", "select", "insert", "join", "sql", "schema", "tabla", "consulta"],
        checks=[
            DomainCheck(
                code="sql_missing_specifics",
                required=("table", "query", "tabla", "consulta"),
                message="SQL prompt does not name a table or query",
                suggestion="Name the tables involved or describe the query you need",
            ),
            DomainCheck(
                code="sql_missing_constraints",
                required=("constraint", "primary key", "foreign key", "index"),
                message="Consider specifying constraints and indexes",
                suggestion="Add primary key, foreign key and index requirements",
                level="suggestion",
            ),
        ],
        system_prompt="""You are a senior database architect and SQL expert with extensive experience in:

**Database Design:**
- Relational database modeling and normalization (1NF, 2NF, 3NF, BCNF)
- Entity-relationship diagrams and schema design
- Data integrity, constraints, and referential integrity

**SQL Expertise:**
- Query optimization and execution plans
- Complex joins, subqueries, window functions, and CTEs
- Database-specific features (PostgreSQL, MySQL, SQLite)

Always provide clean, well-formatted SQL with descriptive comments, snake_case naming, appropriate data types and constraints, and performance considerations.""",
        examples=[
            Example(
                input="hazme una bonita tabla para usuarios",
                output=(
                    "Design a well-structured, normalized database table for users including:\n"
                    "- Appropriate data types and constraints\n"
                    "- Primary and foreign key relationships\n"
                    "- Proper indexing for performance\n"
                    "- Sample data (5-10 rows) to illustrate usage"
                ),
                explanation="Transformed vague Spanish request into specific technical requirements",
            ),
            Example(
                input="make fast query for sales data",
                output=(
                    "Create a performance-optimized SQL query for sales data analysis including:\n"
                    "- Appropriate JOIN operations for related tables\n"
                    "- Proper indexing strategy for query performance\n"
                    "- Sample output format"
                ),
                explanation="Enhanced generic performance request with specific optimization techniques",
            ),
        ],
        offline_prefix="Design and implement a SQL solution that",
    )


def _branding() -> DomainProfile:
    return DomainProfile(
        name="branding",
        description="Brand strategy, marketing campaigns, and messaging",
        weights=QualityWeights(clarity=0.25, specificity=0.3, structure=0.25, completeness=0.2),
        rules=[
            _rule(
                "branding_vague_brand",
                r"\bbonit[oa]\s+(?:brand|marca|campaign|campaña)\b",
                "compelling and memorable brand identity",
                "Replace vague brand adjectives",
            ),
            _rule("branding_vague_copy", r"\bbuen[oa]\s+(?:copy|texto|content)\b", "engaging, conversion-focused copy", "Sharpen copy goals"),
            _rule("branding_nice_logo", r"\bnice\s+(?:logo|design)\b", "professional, brand-aligned visual identity", "Clarify visual identity"),
            _rule(
                "branding_attract_people",
                r"\battract\s+(?:people|gente|customers)\b",
                "engage target audience and drive conversion",
                "Replace vague audience goal",
            ),
            _rule("branding_viral", r"\b(?:viral|popular)\b", "shareable and engaging", "Temper unrealistic reach goals"),
            _rule(
                "branding_catchy_slogan",
                r"\bcatchy\s+(?:slogan|tagline)\b",
                "memorable slogan that reinforces brand values",
                "Tie slogan to brand values",
            ),
            _rule(
                "branding_strategy_request",
                r"^(?:make|create|design)\s+(?:a\s+)?(?:brand|logo|campaign)\b",
                "Develop a comprehensive brand strategy for",
                "Convert command to strategic request",
                "structure",
            ),
            _rule(
                "branding_sell_more",
                r"\bsell\s+(?:more|products|stuff)\b",
                "increase conversion rates and customer engagement",
                "Replace vague sales goal",
                "structure",
            ),
        ],
        enhancements=[
            _enhance(
                "add_audience_considerations",
                r"\b(?:audience|target|customers?)\b",
                "Define the primary demographic, key pain points and preferred communication channels.",
                "Added target audience considerations",
                unless=r"demographic",
            ),
            _enhance(
                "add_campaign_objectives",
                r"\b(?:campaign|marketing)\b",
                "Define campaign objectives, target metrics, and success measurements.",
                "Added campaign objectives",
                unless=r"\bkpi|metrics?\b",
            ),
        ],
        keyword_groups=[("audience", "target", "brand"), ("voice", "tone", "message")],
        detection_keywords=["brand", "marketing", "campaign", "logo", "copy", "audience", "message", "slogan", "marca"],
        checks=[
            DomainCheck(
                code="branding_missing_context",
                required=("audience", "brand"),
                message="Branding prompt does not describe the brand or its audience",
                suggestion="Describe the brand and who the target audience is",
            ),
            DomainCheck(
                code="branding_missing_tone",
                required=("tone", "voice"),
                message="Consider specifying the brand voice or tone",
                suggestion="State the desired tone, e.g. playful, premium or authoritative",
                level="suggestion",
            ),
        ],
        system_prompt="""You are a senior brand strategist and marketing expert with extensive experience in:

**Brand Strategy & Positioning:**
- Brand identity development and visual design systems
- Competitive analysis and market positioning
- Brand voice, personality, and messaging frameworks

**Marketing & Communications:**
- Integrated marketing campaign development
- Audience segmentation and persona development

Always ground recommendations in the target audience, measurable goals, and a consistent brand voice.""",
        examples=[
            Example(
                input="make nice brand for my business that attracts people",
                output=(
                    "Develop a comprehensive brand strategy that:\n"
                    "- Creates compelling brand identity aligned with target audience values\n"
                    "- Engages a specific demographic with measurable conversion goals\n"
                    "- Includes brand voice guidelines and visual identity standards"
                ),
                explanation="Transformed generic brand request into strategic framework with audience focus",
            ),
        ],
        offline_prefix="Design a brand strategy that",
    )


def _cine() -> DomainProfile:
    return DomainProfile(
        name="cine",
        description="Screenwriting, film and video production",
        weights=QualityWeights(clarity=0.2, specificity=0.35, structure=0.3, completeness=0.15),
        rules=[
            _rule(
                "cine_vague_film",
                r"\bbonit[oa]\s+(?:película|film|movie|script)\b",
                "compelling cinematic narrative with strong character development",
                "Replace vague film adjectives",
            ),
            _rule(
                "cine_good_script",
                r"\bbuen\s+(?:guión|script|screenplay)\b",
                "well-structured screenplay with industry-standard formatting",
                "Clarify screenplay expectations",
            ),
            _rule("cine_interesting_story", r"\binteresting\s+(?:story|historia)\b", "engaging narrative with clear dramatic arc", "Clarify story goals"),
            _rule(
                "cine_cool_character",
                r"\bcool\s+(?:character|personaje)\b",
                "multi-dimensional character with clear motivations",
                "Clarify character depth",
            ),
            _rule(
                "cine_good_dialogue",
                r"\bgood\s+(?:dialogue|diálogo)\b",
                "authentic dialogue that reveals character and advances plot",
                "Clarify dialogue purpose",
            ),
            _rule(
                "cine_screenplay_request",
                r"^(?:write|create|make)\s+(?:a\s+)?(?:movie|film|script)\b",
                "Develop a screenplay for",
                "Convert command to development request",
                "structure",
            ),
        ],
        enhancements=[
            _enhance(
                "add_character_framework",
                r"\b(?:character|personaje|protagonist)\b",
                "Include character backstory, motivation, goal, and character arc development.",
                "Added character development framework",
                unless=r"backstory",
            ),
            _enhance(
                "add_format_requirements",
                r"\b(?:screenplay|script|guión)\b",
                "Use industry-standard screenplay formatting with a three-act structure.",
                "Added format requirements",
                unless=r"\bformat",
            ),
        ],
        keyword_groups=[("character", "story", "script"), ("scene", "dialogue", "format")],
        detection_keywords=["script", "screenplay", "film", "movie", "cinema", "character", "scene", "dialogue", "película"],
        system_prompt="""You are a professional screenwriter and story consultant with extensive experience in:

**Screenwriting & Story Structure:**
- Three-act structure and dramatic story beats
- Character development and compelling character arcs
- Dialogue writing that reveals character and advances plot

**Cinematic Storytelling:**
- Visual storytelling and "show don't tell" principles
- Scene construction and dramatic tension building

Always deliver industry-standard formatting and explain structural choices.""",
        examples=[
            Example(
                input="write bonita película about interesting character who does cool things",
                output=(
                    "Develop a screenplay featuring a multi-dimensional protagonist with clear motivations.\n"
                    "- Backstory: define character history and formative experiences\n"
                    "- Character arc: plan the transformation throughout the story\n"
                    "- Format: three-act structure, industry-standard formatting"
                ),
                explanation="Transformed vague film idea into a screenplay development framework",
            ),
        ],
        offline_prefix="Create a screenplay/video that",
    )


def _saas() -> DomainProfile:
    return DomainProfile(
        name="saas",
        description="SaaS product features, platforms and user experience",
        weights=QualityWeights(clarity=0.25, specificity=0.3, structure=0.25, completeness=0.2),
        rules=[
            _rule(
                "saas_vague_app",
                r"\bbonit[oa]\s+(?:app|aplicación|application)\b",
                "user-friendly, scalable SaaS application",
                "Replace vague app adjectives",
            ),
            _rule(
                "saas_good_feature",
                r"\bbuen[oa]\s+(?:feature|función|característica)\b",
                "user-centric feature that solves specific pain points",
                "Clarify feature value",
            ),
            _rule("saas_cool_dashboard", r"\bcool\s+(?:dashboard|panel)\b", "intuitive dashboard with actionable insights", "Clarify dashboard purpose"),
            _rule(
                "saas_easy_interface",
                r"\beasy\s+(?:interface|ui|interfaz)\b",
                "intuitive user interface with minimal learning curve",
                "Clarify usability expectations",
            ),
            _rule(
                "saas_platform_request",
                r"^(?:build|create|make)\s+(?:an?\s+)?(?:app|software|platform)\b",
                "Design and develop a SaaS platform that",
                "Convert command to product request",
                "structure",
            ),
            _rule(
                "saas_manage_data",
                r"\bmanage\s+(?:data|información)\b",
                "efficiently organize and leverage business data",
                "Clarify data management goal",
                "structure",
            ),
        ],
        enhancements=[
            _enhance(
                "add_integration_specs",
                r"\b(?:integration|api|connect)\b",
                "Describe API design, authentication and third-party integration requirements.",
                "Added integration specifications",
                unless=r"authenticat",
            ),
            _enhance(
                "add_scalability_specs",
                r"\b(?:scalable|scale|growth)\b",
                "Specify expected load, multi-tenancy and scaling strategy.",
                "Added scalability specifications",
                unless=r"multi-tenan",
            ),
        ],
        keyword_groups=[("user", "feature", "platform"), ("scalable", "integration", "api")],
        detection_keywords=["app", "application", "feature", "user", "dashboard", "api", "integration", "subscription", "saas"],
        system_prompt="""You are a senior product manager and SaaS architect with extensive experience in:

**Product Strategy & Development:**
- User research, persona development, and customer journey mapping
- Feature prioritization and product-market fit validation

**Technical Architecture:**
- Cloud-native, scalable SaaS architecture design
- APIs, integrations, security and multi-tenant data design

Always connect features to user outcomes and measurable business value.""",
        examples=[
            Example(
                input="build bonita app for users to manage their stuff easily",
                output=(
                    "Design and develop a user-friendly, scalable SaaS application that empowers users "
                    "to efficiently organize and leverage business data.\n"
                    "- Intuitive navigation with consistent design patterns\n"
                    "- API-first development for integration capabilities"
                ),
                explanation="Transformed vague app request into a SaaS development framework",
            ),
        ],
        offline_prefix="Build a SaaS feature that",
    )


def _devops() -> DomainProfile:
    return DomainProfile(
        name="devops",
        description="Infrastructure, deployment pipelines and operations",
        weights=QualityWeights(clarity=0.2, specificity=0.4, structure=0.25, completeness=0.15),
        rules=[
            _rule(
                "devops_vague_deploy",
                r"\bbonit[oa]\s+(?:deploy|deployment|despliegue)\b",
                "automated, reliable deployment pipeline",
                "Replace vague deployment adjectives",
            ),
            _rule(
                "devops_good_pipeline",
                r"\bbuen[oa]\s+(?:pipeline|flujo)\b",
                "efficient CI/CD pipeline with comprehensive testing",
                "Clarify pipeline expectations",
            ),
            _rule(
                "devops_fast_deploy",
                r"\bfast\s+(?:deploy|build|compilation)\b",
                "optimized deployment process with minimal downtime",
                "Clarify deployment speed goal",
            ),
            _rule(
                "devops_secure_server",
                r"\bsecure\s+(?:server|servidor)\b",
                "hardened infrastructure with security best practices",
                "Clarify security expectations",
            ),
            _rule(
                "devops_provision_request",
                r"^(?:setup|configure|create)\s+(?:a\s+)?(?:server|infrastructure)\b",
                "Design and provision cloud infrastructure for",
                "Convert command to provisioning request",
                "structure",
            ),
            _rule(
                "devops_automate_deploy",
                r"^(?:automate|automatizar)\s+(?:deploy|deployment)\b",
                "Implement automated deployment pipeline for",
                "Convert command to automation request",
                "structure",
            ),
        ],
        enhancements=[
            _enhance(
                "add_pipeline_requirements",
                r"\b(?:ci/cd|pipeline|jenkins|github\s+actions)\b",
                "Include automated testing stages, quality gates and rollback mechanisms.",
                "Added CI/CD pipeline requirements",
                unless=r"rollback",
            ),
            _enhance(
                "add_observability",
                r"\b(?:deploy|deployment|production)\b",
                "Define monitoring, alerting and logging for the deployed services.",
                "Added observability requirements",
                unless=r"monitor",
            ),
        ],
        keyword_groups=[("deploy", "infrastructure", "pipeline"), ("security", "monitoring", "automation")],
        detection_keywords=["deploy", "docker", "kubernetes", "aws", "cloud", "pipeline", "infrastructure", "ci/cd", "terraform"],
        system_prompt="""You are a senior DevOps engineer and Site Reliability Engineer with extensive experience in:

**Infrastructure & Cloud:**
- Cloud-native architecture design (AWS, GCP, Azure)
- Infrastructure as Code and container orchestration

**CI/CD & Automation:**
- Continuous integration and deployment pipeline design
- Release strategies, rollbacks and GitOps workflows

Always address security, observability and failure recovery.""",
        examples=[
            Example(
                input="setup bonita deployment for my app that works fast",
                output=(
                    "Design and provision cloud infrastructure for an automated, reliable deployment pipeline "
                    "with minimal downtime.\n"
                    "- Automated testing stages (unit, integration, security)\n"
                    "- Rollback mechanisms and blue-green deployments"
                ),
                explanation="Transformed vague deployment request into a DevOps implementation plan",
            ),
        ],
        offline_prefix="Set up infrastructure automation that",
    )


def _general() -> DomainProfile:
    return DomainProfile(
        name="general",
        description="General purpose prompt optimization with universal improvements",
        rules=list(GENERAL_RULES),
        system_prompt=GENERAL_SYSTEM_PROMPT,
        examples=[
            Example(
                input="make something good that works nice",
                output=(
                    "Create a well-designed solution that effectively addresses the specified requirements "
                    "with clear functionality and user benefits."
                ),
                explanation="Replaced vague terms with specific, actionable language",
            ),
        ],
        offline_prefix="Develop a solution that",
    )


def builtin_profiles() -> list[DomainProfile]:
    return [_sql(), _branding(), _cine(), _saas(), _devops(), _general()]
