"""
Built-in Crisis Resources

Resources and contacts compiled into the package. They are available
with zero network access and zero prior cache population.

SAFETY-CRITICAL: Entries marked critical (988, 911, Crisis Text Line)
can never be shadowed or removed by custom or loaded entries.
"""

from harbor.domain.enums.resources import ContactType, ResourceType, ResourceUrgency
from harbor.domain.models.resource import CrisisResource, EmergencyContact


BUILT_IN_RESOURCES: tuple[CrisisResource, ...] = (
    CrisisResource(
        id="emergency-988",
        title="988 Suicide & Crisis Lifeline",
        type=ResourceType.HOTLINE,
        urgency=ResourceUrgency.IMMEDIATE,
        content=(
            "Available 24/7 for crisis support. Free, confidential, and staffed "
            "by trained crisis counselors."
        ),
        category="Emergency Support",
        instructions=(
            "Dial 988 from any phone",
            "Wait to be connected (usually under 1 minute)",
            "Speak with a trained crisis counselor",
            "Your call is confidential and free",
        ),
        phone_number="988",
        critical=True,
    ),
    CrisisResource(
        id="emergency-911",
        title="911 Emergency Services",
        type=ResourceType.HOTLINE,
        urgency=ResourceUrgency.IMMEDIATE,
        content="For life-threatening emergencies requiring immediate medical, police, or fire response.",
        category="Emergency Services",
        instructions=(
            "Call 911 immediately",
            "State your emergency clearly",
            "Provide your location",
            "Stay on the line until help arrives",
            "Follow dispatcher instructions",
        ),
        phone_number="911",
        critical=True,
    ),
    CrisisResource(
        id="crisis-text-line",
        title="Crisis Text Line",
        type=ResourceType.HOTLINE,
        urgency=ResourceUrgency.IMMEDIATE,
        content=(
            "Text-based crisis support available 24/7. Text HOME to 741741 to "
            "connect with a crisis counselor."
        ),
        category="Text Support",
        instructions=(
            "Text HOME to 741741",
            "Wait for response (usually 2-3 minutes)",
            "Text with a trained crisis counselor",
            "All conversations are confidential",
        ),
        phone_number="741741",
        critical=True,
    ),
    CrisisResource(
        id="breathing-4-7-8",
        title="4-7-8 Breathing Technique",
        type=ResourceType.BREATHING,
        urgency=ResourceUrgency.URGENT,
        content="A calming breathing exercise that can help reduce anxiety and panic in crisis moments.",
        category="Self-Help Techniques",
        instructions=(
            "Find a comfortable position",
            "Exhale completely",
            "Inhale through nose for 4 counts",
            "Hold breath for 7 counts",
            "Exhale through mouth for 8 counts",
            "Repeat 3-4 times",
            "Focus only on counting and breathing",
        ),
    ),
    CrisisResource(
        id="grounding-5-4-3-2-1",
        title="5-4-3-2-1 Grounding Technique",
        type=ResourceType.GROUNDING,
        urgency=ResourceUrgency.URGENT,
        content="A sensory grounding technique to help you stay present and calm during overwhelming moments.",
        category="Grounding Techniques",
        instructions=(
            "Look around and name 5 things you can see",
            "Notice 4 things you can touch",
            "Listen for 3 things you can hear",
            "Identify 2 things you can smell",
            "Name 1 thing you can taste",
            "Take slow, deep breaths throughout",
        ),
    ),
    CrisisResource(
        id="immediate-safety-checklist",
        title="Immediate Safety Checklist",
        type=ResourceType.SAFETY_PLAN,
        urgency=ResourceUrgency.IMMEDIATE,
        content="Quick safety steps to take when experiencing crisis thoughts or feelings.",
        category="Safety Planning",
        instructions=(
            "Remove any means of self-harm from your immediate area",
            "Call someone you trust or a crisis line",
            "Go to a safe place with other people if possible",
            "Use your coping strategies (breathing, grounding)",
            "Remind yourself that these feelings are temporary",
            "If in immediate danger, call 911",
        ),
    ),
    CrisisResource(
        id="progressive-muscle-relaxation",
        title="Progressive Muscle Relaxation",
        type=ResourceType.TECHNIQUE,
        urgency=ResourceUrgency.HELPFUL,
        content="A technique to reduce physical tension and anxiety by systematically relaxing muscle groups.",
        category="Relaxation Techniques",
        instructions=(
            "Find a quiet, comfortable place to sit or lie down",
            "Start with your toes: tense for 5 seconds, then relax",
            "Continue with calves, thighs, abdomen, hands, arms, shoulders",
            "Tense your face muscles, then relax",
            "End by taking several deep breaths",
        ),
    ),
    CrisisResource(
        id="crisis-affirmations",
        title="Crisis Affirmations",
        type=ResourceType.SELF_HELP,
        urgency=ResourceUrgency.HELPFUL,
        content="Positive statements to help you through difficult moments.",
        category="Self-Help",
        instructions=(
            "This feeling is temporary and will pass",
            "I have survived difficult times before",
            "Help is available and I deserve support",
            "I can take this one moment at a time",
            "I am not alone in this struggle",
        ),
    ),
)


BUILT_IN_CONTACTS: tuple[EmergencyContact, ...] = (
    EmergencyContact(
        id="988-lifeline",
        name="988 Suicide & Crisis Lifeline",
        phone="988",
        type=ContactType.CRISIS_LINE,
        available_24_7=True,
        description="National suicide prevention and crisis support",
        instructions="Dial 988 for immediate crisis support. Free and confidential.",
        critical=True,
    ),
    EmergencyContact(
        id="crisis-text",
        name="Crisis Text Line",
        phone="741741",
        type=ContactType.CRISIS_LINE,
        available_24_7=True,
        description="Text-based crisis support",
        instructions="Text HOME to 741741 for crisis counseling via text message.",
        text_only=True,
        critical=True,
    ),
    EmergencyContact(
        id="emergency-services",
        name="911 Emergency Services",
        phone="911",
        type=ContactType.EMERGENCY,
        available_24_7=True,
        description="Emergency medical, police, and fire services",
        instructions="Call 911 for life-threatening emergencies only.",
        critical=True,
    ),
    EmergencyContact(
        id="nami-helpline",
        name="NAMI HelpLine",
        phone="1-800-950-6264",
        type=ContactType.CRISIS_LINE,
        available_24_7=False,
        description="Mental health information and referrals",
        instructions="Available Mon-Fri 10am-10pm ET.",
    ),
    EmergencyContact(
        id="samhsa-helpline",
        name="SAMHSA National Helpline",
        phone="1-800-662-4357",
        type=ContactType.PROFESSIONAL,
        available_24_7=True,
        description="Treatment referral and information service",
        instructions="Free, confidential treatment referral for substance use and mental health.",
    ),
    EmergencyContact(
        id="domestic-violence-hotline",
        name="National Domestic Violence Hotline",
        phone="1-800-799-7233",
        type=ContactType.CRISIS_LINE,
        available_24_7=True,
        description="Support for domestic violence situations",
        instructions="Confidential support for those experiencing domestic violence.",
    ),
)


CRITICAL_RESOURCE_IDS: frozenset[str] = frozenset(r.id for r in BUILT_IN_RESOURCES if r.critical)
CRITICAL_CONTACT_IDS: frozenset[str] = frozenset(c.id for c in BUILT_IN_CONTACTS if c.critical)
