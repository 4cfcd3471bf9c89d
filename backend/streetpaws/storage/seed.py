"""
Helpline directory seeded into an empty store on first run.
"""

from streetpaws.schemas.animal import HelplineCreate

DEFAULT_HELPLINES = [
    HelplineCreate(
        name="BBMP Animal Control Center",
        type="24/7 Emergency Response",
        phone="+91 80 2222 5384",
        hours="Available 24/7",
        coverage="Bengaluru City Corporation",
        description=(
            "Official BBMP animal control for emergency response to injured, "
            "dangerous, or distressed animals across Bengaluru"
        ),
    ),
    HelplineCreate(
        name="Cessna Lifeline Veterinary Hospital",
        type="Medical Emergency Support",
        phone="+91 80 2845 5555",
        hours="Daily 9AM - 9PM",
        coverage="Sarjapur Road, Electronic City",
        description=(
            "24/7 emergency veterinary care and treatment for stray animals "
            "with specialized trauma unit"
        ),
    ),
    HelplineCreate(
        name="Karuna Animal Shelter",
        type="Rescue & Rehabilitation",
        phone="+91 98450 44444",
        hours="Daily 8AM - 6PM",
        coverage="Peenya, Rajajinagar, Malleshwaram",
        description=(
            "Non-profit animal rescue organization providing shelter, "
            "rehabilitation and adoption services"
        ),
    ),
    HelplineCreate(
        name="CUPA Animal Ambulance",
        type="Mobile Emergency Unit",
        phone="+91 99000 25000",
        hours="Available 24/7",
        coverage="All Bengaluru Districts",
        description=(
            "Compassion Unlimited Plus Action (CUPA) mobile veterinary services "
            "and emergency animal transport"
        ),
    ),
    HelplineCreate(
        name="Krupa Animal Hospital",
        type="Veterinary Medical Care",
        phone="+91 80 2334 4321",
        hours="Daily 10AM - 8PM",
        coverage="Jayanagar, BTM Layout, Koramangala",
        description=(
            "Full-service veterinary hospital offering medical care, surgery, "
            "and vaccination services for stray animals"
        ),
    ),
]
