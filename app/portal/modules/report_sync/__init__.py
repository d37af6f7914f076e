"""
Report sync module.

Pulls the member report from Zoho Analytics on a schedule and caches it in blob storage so
page renders never hit the rate-limited API directly. The portal only reads it to greet a
contact by first name and to seed an account id.
"""
