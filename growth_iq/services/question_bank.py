from flask import current_app

from growth_iq.models import db, QuizQuestion
from growth_iq.services.scoring import CATEGORIES, MAX_SCALE_VALUE, MIN_SCALE_VALUE

ANSWER_SCALE = [
    {'value': 1, 'label': "1 - Not at all true"},
    {'value': 2, 'label': "2 - Slightly true"},
    {'value': 3, 'label': "3 - Somewhat true"},
    {'value': 4, 'label': "4 - Mostly true"},
    {'value': 5, 'label': "5 - Absolutely true"},
]

# (questionNumber, category, text); four per category
DEFAULT_QUESTIONS = [
    (1, 'independence', "If something happened to me tomorrow, my business could still run without major disruption."),
    (2, 'vision', "I have a clear, written vision for what I want my business and life to look like in 5-10 years."),
    (3, 'leadership', "My leadership team (or key employees) can make critical decisions without my constant involvement."),
    (4, 'operations', "I have documented systems and processes that someone else could follow to run the business."),
    (5, 'succession', "I know what my business is worth today and what I want it to be worth when I exit."),
    (6, 'succession', "There is a plan in place for succession, sale, or transition, even if it's years away."),
    (7, 'legacy', "I've taken steps to ensure the business continues creating impact and income even after I step away."),
    (8, 'leadership', "I spend more time leading and thinking strategically than doing day-to-day tasks."),
    (9, 'vision', "My business is aligned with my personal wealth, health, and freedom goals."),
    (10, 'legacy', "If my family or team were suddenly left to manage the business, they'd know what to do."),
    (11, 'independence', "I could take a two-week vacation without checking email and the business would keep growing."),
    (12, 'independence', "Key client relationships are held by my team, not only by me."),
    (13, 'independence', "Revenue would not drop significantly if I stepped back from sales for a quarter."),
    (14, 'vision', "My team understands where the business is headed and how their work contributes to it."),
    (15, 'vision', "I review progress against my long-term goals at least once a quarter."),
    (16, 'leadership', "I have identified and am actively developing the next generation of leaders in my business."),
    (17, 'leadership', "My managers hold their teams accountable without needing me to step in."),
    (18, 'operations', "Our financial reporting is accurate, timely, and used to make decisions."),
    (19, 'operations', "New employees can be onboarded using documented training materials."),
    (20, 'operations', "We use technology and tools that reduce dependence on any single person's knowledge."),
    (21, 'succession', "I have discussed my exit or transition intentions with my family and key advisors."),
    (22, 'succession', "My legal, tax, and estate planning documents reflect my current business situation."),
    (23, 'legacy', "I know what I want to be remembered for in my industry and community."),
    (24, 'legacy', "The values of the business are written down and lived out by the team."),
]


class QuestionBankService:
    @staticmethod
    def active_questions():
        """Questions shown to respondents: the active set, in display order."""
        return QuizQuestion.query.filter_by(is_active=True)\
            .order_by(QuizQuestion.order.asc(), QuizQuestion.question_number.asc()).all()

    @staticmethod
    def all_questions():
        return QuizQuestion.query.order_by(QuizQuestion.order.asc(), QuizQuestion.question_number.asc()).all()

    @staticmethod
    def _validate(data, existing=None):
        text = (data.get('text') or data.get('question') or '').strip()
        if not text:
            raise ValueError("Please enter a question")

        category = data.get('category')
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category '{category}'")

        try:
            number = int(data.get('questionNumber'))
        except (TypeError, ValueError):
            raise ValueError("questionNumber must be an integer")
        if number < 1:
            raise ValueError("questionNumber must be 1 or greater")

        clash = QuizQuestion.query.filter_by(question_number=number).first()
        if clash and (existing is None or clash.id != existing.id):
            raise ValueError(f"Question number {number} is already used")

        try:
            order = int(data.get('order', number))
        except (TypeError, ValueError):
            raise ValueError("order must be an integer")

        return {
            'text': text,
            'category': category,
            'question_number': number,
            'order': order,
            'is_active': bool(data.get('isActive', True)),
        }

    @staticmethod
    def create_question(data):
        fields = QuestionBankService._validate(data)
        question = QuizQuestion(**fields)
        db.session.add(question)
        db.session.commit()
        return question

    @staticmethod
    def update_question(question_id, data):
        question = db.session.get(QuizQuestion, question_id)
        if not question:
            return None
        merged = question.to_dict()
        merged.update(data)
        for key, value in QuestionBankService._validate(merged, existing=question).items():
            setattr(question, key, value)
        db.session.commit()
        return question

    @staticmethod
    def toggle_active(question_id):
        question = db.session.get(QuizQuestion, question_id)
        if not question:
            return None
        question.is_active = not question.is_active
        db.session.commit()
        return question

    @staticmethod
    def delete_question(question_id):
        """Historical submissions keep answers keyed by questionNumber, so removal is safe."""
        question = db.session.get(QuizQuestion, question_id)
        if not question:
            return False
        db.session.delete(question)
        db.session.commit()
        return True

    @staticmethod
    def seed_default_questions():
        """Idempotent: question numbers already present are skipped. Returns how many were added."""
        existing = {n for (n,) in db.session.query(QuizQuestion.question_number).all()}
        added = 0
        for number, category, text in DEFAULT_QUESTIONS:
            if number in existing:
                continue
            db.session.add(QuizQuestion(
                question_number=number,
                text=text,
                category=category,
                is_active=True,
                order=number,
            ))
            added += 1
        db.session.commit()
        if added:
            current_app.logger.info(f"Seeded {added} default quiz questions")
        return added

    @staticmethod
    def scale():
        return {'min': MIN_SCALE_VALUE, 'max': MAX_SCALE_VALUE, 'options': ANSWER_SCALE}
