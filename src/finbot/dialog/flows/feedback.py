"""Four-question feedback survey with a confirmation step."""
from finbot.dialog import keyboards
from finbot.dialog.callbacks import FeedbackRecommend
from finbot.dialog.router import FlowRouter
from finbot.dialog.state import Step
from finbot.locales.translations import get_text
from finbot.utils.formatting import escape

router = FlowRouter("feedback")

# text step -> (answer key, next step, next question)
QUESTIONS = {
    Step.FEEDBACK_Q1: ('likes', Step.FEEDBACK_Q2, 'feedback_q2'),
    Step.FEEDBACK_Q2: ('missing', Step.FEEDBACK_Q3, 'feedback_q3'),
    Step.FEEDBACK_Q3: ('annoying', Step.FEEDBACK_Q4, 'feedback_q4'),
}

YES_ANSWERS = {'да', 'yes'}
NO_ANSWERS = {'нет', 'no'}


@router.command('/feedback')
@router.action('feedback')
async def start_feedback(ctx, _):
    ctx.reset().step = Step.FEEDBACK_Q1
    ctx.reply(get_text('feedback_q1'), keyboards.feedback_cancel())


@router.step(Step.FEEDBACK_Q1, Step.FEEDBACK_Q2, Step.FEEDBACK_Q3)
async def answer_question(ctx, text):
    key, next_step, question = QUESTIONS[ctx.state.step]
    ctx.state.feedback_data[key] = text
    ctx.state.step = next_step
    markup = keyboards.feedback_recommend() if next_step == Step.FEEDBACK_Q4 else keyboards.feedback_cancel()
    ctx.reply(get_text(question), markup)


@router.step(Step.FEEDBACK_Q4)
async def answer_recommend_text(ctx, text):
    answer = text.strip().lower()
    if answer in YES_ANSWERS:
        await confirm(ctx, True)
    elif answer in NO_ANSWERS:
        await confirm(ctx, False)
    else:
        ctx.reply(get_text('feedback_answer_buttons'), keyboards.feedback_recommend())


@router.callback(FeedbackRecommend)
async def answer_recommend(ctx, command: FeedbackRecommend):
    if ctx.state.step != Step.FEEDBACK_Q4:
        ctx.expired()
        return
    await confirm(ctx, command.recommend)


async def confirm(ctx, recommend: bool):
    data = ctx.state.feedback_data
    data['recommend'] = 'yes' if recommend else 'no'
    ctx.state.step = Step.FEEDBACK_CONFIRM
    ctx.reply(
        get_text(
            'feedback_summary',
            likes=escape(data.get('likes')),
            missing=escape(data.get('missing')),
            annoying=escape(data.get('annoying')),
            recommend="Да" if recommend else "Нет",
        ),
        keyboards.feedback_confirm(),
    )


@router.action('feedback_submit')
async def submit(ctx, action):
    if ctx.state.step != Step.FEEDBACK_CONFIRM:
        ctx.expired()
        return
    data = ctx.state.feedback_data
    await ctx.service.submit_feedback(
        data.get('likes', ''), data.get('missing', ''), data.get('annoying', ''),
        data.get('recommend') == 'yes',
    )
    ctx.reset()
    ctx.main_menu(get_text('feedback_thanks'))


@router.action('feedback_cancel')
async def cancel_feedback(ctx, action):
    ctx.reset()
    ctx.main_menu(get_text('feedback_cancelled'))
