from slackpipe.main import run

run()
